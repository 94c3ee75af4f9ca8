"""Route aggregation -- combines all API sub-routers into a single router."""

from fastapi import APIRouter

from prusti_playground.api.builds import router as builds_router
from prusti_playground.api.health import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(builds_router)
