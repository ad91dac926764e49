"""Shared FastAPI dependency injection."""

from __future__ import annotations

from mindmapper.models.llm_registry import LLMRegistry
from mindmapper.models.model_router import ModelRouter
from mindmapper.services.mindmap_service import MindMapService

_registry: LLMRegistry | None = None
_service: MindMapService | None = None


def set_registry(registry: LLMRegistry) -> None:
    global _registry, _service
    _registry = registry
    _service = MindMapService(ModelRouter(registry))


def set_mindmap_service(service: MindMapService) -> None:
    global _service
    _service = service


def get_registry() -> LLMRegistry:
    if _registry is None:
        raise RuntimeError("LLM registry not initialized")
    return _registry


def get_mindmap_service() -> MindMapService:
    if _service is None:
        raise RuntimeError("Mind map service not initialized")
    return _service
