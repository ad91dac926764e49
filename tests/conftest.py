"""Shared test fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mindmapper.models.schemas import Position


@pytest.fixture(autouse=True)
def _env_setup(monkeypatch):
    """Set required environment variables for tests."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "test-key")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("LANGSMITH_API_KEY", "")
    monkeypatch.setenv("LANGCHAIN_TRACING_V2", "false")
    monkeypatch.setenv("LOG_FORMAT", "console")


@pytest.fixture
def settings():
    from mindmapper.config import Settings

    return Settings(
        OPENROUTER_API_KEY="test-key",
        LANGSMITH_API_KEY="",
        LANGCHAIN_TRACING_V2=False,
        STORAGE_BACKEND="memory",
    )


@pytest.fixture
def store():
    from mindmapper.graph.store import GraphStore

    return GraphStore()


@pytest.fixture
def memory_storage():
    from mindmapper.persistence.storage import MemoryStorage

    return MemoryStorage()


@pytest.fixture
def repository(memory_storage, store):
    from mindmapper.persistence.repository import MapRepository

    ticks = iter(range(1_000, 1_000_000, 1_000))
    return MapRepository(memory_storage, store, clock=lambda: float(next(ticks)))


@pytest.fixture
def collaborator():
    """Map API client double; every call returns an empty, valid payload by default."""
    from mindmapper.models.schemas import Insight, MapResponse

    mock = MagicMock()
    mock.generate_map = AsyncMock(return_value=MapResponse(nodes=[], edges=[]))
    mock.suggest_children = AsyncMock(return_value=[])
    mock.get_insight = AsyncMock(
        return_value=Insight(insight="i", blind_spot="b", clusters="c")
    )
    mock.get_semantic_clusters = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def editor(store, collaborator):
    from mindmapper.graph.operations import MindMapEditor

    return MindMapEditor(store, collaborator)


class FakeSurface:
    """Rendering surface double that places node ``i`` at ``(100 * i, 50)``."""

    def __init__(self, origin: Position | None = None) -> None:
        self.origin = origin or Position(x=10, y=20)
        self.positions: dict[str, Position] = {}
        self.selected: list[tuple[str, str]] = []
        self.heights: list[float] = []
        self.layouts: list[dict[str, Any]] = []
        self.position_calls = 0

    def place(self, node_id: str, x: float, y: float) -> None:
        self.positions[node_id] = Position(x=x, y=y)

    def rendered_position(self, node_id: str) -> Position | None:
        self.position_calls += 1
        return self.positions.get(node_id)

    def container_origin(self) -> Position:
        return self.origin

    def selected_edge_pairs(self) -> list[tuple[str, str]]:
        return list(self.selected)

    def set_height(self, height: float) -> None:
        self.heights.append(height)

    def run_layout(self, options: dict[str, Any]) -> None:
        self.layouts.append(options)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def controller(editor, repository, surface):
    from mindmapper.interaction.controller import InteractionController

    ctrl = InteractionController(editor, repository, debounce_ms=10)
    ctrl.attach_surface(surface)
    return ctrl


@pytest.fixture
def mock_registry(settings):
    """LLM registry with mocked models."""
    from mindmapper.models.llm_registry import MODEL_CONFIG, LLMRegistry

    with patch.object(LLMRegistry, "__init__", lambda self, s: None):
        registry = LLMRegistry.__new__(LLMRegistry)
        registry._settings = settings
        registry._models = {}
        registry._slug_cache = {}
        registry._call_stats = {}

        mock_model = MagicMock()
        mock_model.ainvoke = AsyncMock(return_value=MagicMock(content="{}", usage_metadata=None))
        mock_model.model_name = "test-model"

        for task in MODEL_CONFIG:
            registry._models[task] = mock_model
            registry._call_stats[task] = {"calls": 0, "tokens": 0}

        registry.get_fallback_chain = MagicMock(return_value=[])
        return registry


@pytest.fixture
def mock_router(mock_registry):
    from mindmapper.models.model_router import ModelRouter

    return ModelRouter(mock_registry)
