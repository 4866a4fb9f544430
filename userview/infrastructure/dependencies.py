"""Dependency wiring — builds one view session from settings.

The cache is created here and handed to both the orchestrator and the
coordinator, so each session (and each test) gets its own isolated cache.
"""

from collections.abc import Callable
from dataclasses import dataclass

import httpx
from fastapi import Request

from userview.config import Settings, get_settings
from userview.application.interfaces import KeyValueStore, UserTransport
from userview.application.services import (
    ColumnPreferences,
    FetchOrchestrator,
    MutationCoordinator,
    QueryCache,
    RenderBoundary,
    RetryPolicy,
    UrlStateCodec,
    UsersViewService,
)
from userview.domain.exceptions import RenderFailure, UserApiError
from userview.infrastructure.http import HttpUserTransport
from userview.infrastructure.storage.json_file_store import JsonFileStore


def build_transport(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> HttpUserTransport:
    """Provides the httpx-backed transport configured from settings."""
    settings = settings or get_settings()
    return HttpUserTransport(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        http_client=http_client,
    )


def build_users_view_service(
    settings: Settings | None = None,
    *,
    transport: UserTransport | None = None,
    store: KeyValueStore | None = None,
    on_url_change: Callable[[str], None] | None = None,
) -> UsersViewService:
    """Provides a UsersViewService with a fresh cache wired in."""
    settings = settings or get_settings()
    transport = transport or build_transport(settings)
    store = store or JsonFileStore(settings.preferences_file)

    cache = QueryCache(stale_time=settings.stale_time)
    retry_policy = RetryPolicy(
        max_retries=settings.retry_max,
        delays=settings.retry_delays,
    )
    return UsersViewService(
        codec=UrlStateCodec(
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
        ),
        orchestrator=FetchOrchestrator(cache, transport, retry_policy),
        coordinator=MutationCoordinator(cache, transport),
        columns=ColumnPreferences(store, key=settings.column_visibility_key),
        debounce_delay=settings.debounce_delay,
        on_url_change=on_url_change,
    )


# ── FastAPI wiring ───────────────────────────────────────────────────

ServiceFactory = Callable[[], UsersViewService]


@dataclass
class ViewSession:
    """The view hosted by one app instance, with its render boundary."""

    service: UsersViewService
    boundary: RenderBoundary


def error_view(error: BaseException) -> dict[str, str]:
    """Fallback output of the render boundary: what went wrong, classified."""
    cause = error.cause if isinstance(error, RenderFailure) and error.cause else error
    if isinstance(cause, UserApiError):
        return {"kind": cause.kind.value, "message": cause.message}
    return {"kind": "render", "message": str(error) or type(error).__name__}


def get_view_session(request: Request) -> ViewSession:
    """Provides the app's ViewSession, building it on first use."""
    session: ViewSession | None = getattr(request.app.state, "view_session", None)
    if session is None:
        factory: ServiceFactory = getattr(
            request.app.state, "service_factory", build_users_view_service
        )
        session = ViewSession(
            service=factory(),
            boundary=RenderBoundary(error_view),
        )
        request.app.state.view_session = session
    return session
