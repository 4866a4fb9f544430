"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from userview.application.services import UsersViewService
from userview.config import get_settings
from userview.infrastructure.dependencies import build_users_view_service
from userview.infrastructure.logging.log_config import setup_logging
from userview.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — configure logging, tear down the view session."""
    setup_logging()
    logger.info("Users view starting — API at %s", get_settings().api_base_url)

    yield

    session = getattr(app.state, "view_session", None)
    if session is not None:
        session.service.close()


def create_app(
    service_factory: Callable[[], UsersViewService] | None = None,
) -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.service_factory = service_factory or build_users_view_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "userview.main:app",
        host="0.0.0.0",
        port=8030,
        reload=True,
    )
