"""Wires one editing session together from settings."""

from __future__ import annotations

from dataclasses import dataclass

from mindmapper.client.api_client import MapApiClient, MapCollaborator
from mindmapper.config import Settings, get_settings
from mindmapper.graph.operations import MindMapEditor
from mindmapper.graph.store import GraphStore
from mindmapper.interaction.controller import InteractionController
from mindmapper.interaction.surface import DocumentEvents, RenderSurface
from mindmapper.persistence.repository import MapRepository
from mindmapper.persistence.storage import KeyValueStorage, build_storage
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EditorSession:
    store: GraphStore
    repository: MapRepository
    collaborator: MapCollaborator
    editor: MindMapEditor
    controller: InteractionController

    async def close(self) -> None:
        self.controller.dispose()
        close = getattr(self.collaborator, "close", None)
        if close is not None:
            await close()
        logger.info("session_closed")


def create_session(
    settings: Settings | None = None,
    *,
    surface: RenderSurface | None = None,
    storage: KeyValueStorage | None = None,
    collaborator: MapCollaborator | None = None,
    document: DocumentEvents | None = None,
) -> EditorSession:
    """Build a fresh store and everything that operates on it.

    Each call returns an independent graph; nothing is shared between sessions
    except whatever ``storage`` points at.
    """
    settings = settings or get_settings()
    store = GraphStore()
    repository = MapRepository(
        storage if storage is not None else build_storage(settings),
        store,
        namespace=settings.STORAGE_NAMESPACE,
    )
    collaborator = collaborator or MapApiClient.from_settings(settings)
    editor = MindMapEditor(
        store,
        collaborator,
        default_detail_level=settings.DEFAULT_DETAIL_LEVEL,
        max_input_chars=settings.MAX_INPUT_CHARS,
    )
    controller = InteractionController(
        editor,
        repository,
        document=document,
        debounce_ms=settings.OVERLAY_DEBOUNCE_MS,
    )
    if surface is not None:
        controller.attach_surface(surface)

    logger.info("session_created", storage=settings.STORAGE_BACKEND if storage is None else "injected")
    return EditorSession(
        store=store,
        repository=repository,
        collaborator=collaborator,
        editor=editor,
        controller=controller,
    )
