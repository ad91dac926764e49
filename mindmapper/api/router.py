"""Top-level API router aggregating all v1 sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from mindmapper.api.v1.health import router as health_router
from mindmapper.api.v1.maps import router as maps_router

api_router = APIRouter(prefix="/api")
api_router.include_router(health_router)
api_router.include_router(maps_router)
