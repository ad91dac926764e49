"""Health and readiness probe endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from mindmapper.api.dependencies import get_registry

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    return {"status": "healthy"}


@router.get("/ready")
async def ready() -> dict:
    try:
        registry = get_registry()
    except RuntimeError as exc:
        return {"status": "not_ready", "error": str(exc)}
    return {"status": "ready", "tasks": sorted(registry.stats)}
