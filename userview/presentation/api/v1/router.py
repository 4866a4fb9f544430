"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from userview.presentation.api.v1.endpoints.health import router as health_router
from userview.presentation.api.v1.users_view_controller import router as users_view_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(users_view_router)
