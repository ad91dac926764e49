"""Interaction controller: turns raw UI events into edit operations.

The UI glue forwards pointer, keyboard, resize and render events from the
rendering surface and the page; this class decides what they mean for the
graph and owns the transient state that goes with them: open menus, the edge
being drawn, overlay icon positions and per-request loading flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from mindmapper.graph.operations import MindMapEditor, OperationResult
from mindmapper.graph.store import GraphStore
from mindmapper.interaction.debounce import Debouncer
from mindmapper.interaction.layout import LayoutConfig
from mindmapper.interaction.surface import DocumentEvents, Rect, RenderSurface
from mindmapper.models.schemas import (
    Edge,
    Insight,
    Node,
    Position,
    SemanticCluster,
    SuggestionBatch,
)
from mindmapper.persistence.repository import MapRepository
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)

# Menu icon sits to the upper right of the node centre.
ICON_OFFSET = Position(x=60, y=-25)
MENU_WIDTH = 160.0
MENU_HEIGHT = 220.0

RENDER_EVENTS = frozenset({"render", "drag", "free", "pan", "zoom", "layoutstop"})
DELETE_KEYS = frozenset({"Delete", "Backspace"})


class EdgeMode(str, Enum):
    IDLE = "idle"
    DRAG = "drag"
    ARMED = "armed"


@dataclass(frozen=True)
class EdgeInteraction:
    mode: EdgeMode = EdgeMode.IDLE
    source_id: str | None = None


IDLE = EdgeInteraction()


@dataclass(frozen=True)
class PointerTarget:
    """What a tap landed on. ``position`` is in page coordinates."""

    kind: Literal["node", "edge", "background"]
    position: Position
    id: str | None = None
    source: str | None = None
    target: str | None = None

    @classmethod
    def node(cls, node_id: str, position: Position | None = None) -> PointerTarget:
        return cls(kind="node", id=node_id, position=position or Position(x=0, y=0))

    @classmethod
    def edge(cls, edge_id: str | None, source: str, target: str, position: Position) -> PointerTarget:
        return cls(kind="edge", id=edge_id, source=source, target=target, position=position)

    @classmethod
    def background(cls, position: Position) -> PointerTarget:
        return cls(kind="background", position=position)


@dataclass(frozen=True)
class NodeMenu:
    node_id: str
    anchor: Position

    @property
    def bounds(self) -> Rect:
        return Rect(self.anchor.x, self.anchor.y, MENU_WIDTH, MENU_HEIGHT)


@dataclass(frozen=True)
class EdgeMenu:
    edge_id: str | None
    source: str
    target: str
    anchor: Position


class InteractionController:
    """The only caller of :class:`MindMapEditor` on behalf of user input."""

    def __init__(
        self,
        editor: MindMapEditor,
        repository: MapRepository | None = None,
        *,
        document: DocumentEvents | None = None,
        debounce_ms: int = 10,
        layout: LayoutConfig | None = None,
    ) -> None:
        self.editor = editor
        self.repository = repository
        self.document = document or DocumentEvents()
        self._layout = layout
        self._overlay = Debouncer(self.recompute_overlay, debounce_ms / 1000)
        self._unsubscribe = editor.store.subscribe(self._on_topology_changed)

        self.surface: RenderSurface | None = None
        self.graph_height: float | None = None
        self.overlay_positions: dict[str, Position] = {}

        self.node_menu: NodeMenu | None = None
        self.edge_menu: EdgeMenu | None = None
        self.pending_node_position: Position | None = None
        self.add_node_prompt_open = False
        self.edge_interaction: EdgeInteraction = IDLE

        self.suggesting: set[str] = set()
        # Last failure per node for suggest and expand requests.
        self.suggest_errors: dict[str, str] = {}
        self.insight: Insight | None = None
        self.insight_loading = False
        self.insight_error: str | None = None
        self.clusters: list[SemanticCluster] | None = None
        self.clusters_loading = False
        self.clusters_error: str | None = None

    @property
    def store(self) -> GraphStore:
        return self.editor.store

    # ── Surface lifecycle ────────────────────────────────────────────

    def attach_surface(self, surface: RenderSurface) -> None:
        self.surface = surface
        self.recompute_overlay()

    def detach_surface(self) -> None:
        self._overlay.cancel()
        self.close_node_menu()
        self.close_edge_menu()
        self.cancel_edge_interaction()
        self.surface = None
        self.overlay_positions = {}

    def dispose(self) -> None:
        self.detach_surface()
        self._unsubscribe()

    def handle_resize(self, container_height: float) -> bool:
        if self.surface is None:
            return False
        if container_height != self.graph_height:
            self.graph_height = container_height
            self.surface.set_height(container_height)
        return True

    # ── Overlay positions ────────────────────────────────────────────

    def recompute_overlay(self) -> None:
        surface = self.surface
        if surface is None:
            self.overlay_positions = {}
            return
        positions: dict[str, Position] = {}
        for node in self.store.nodes:
            rendered = surface.rendered_position(node.id)
            if rendered is not None:
                positions[node.id] = Position(x=rendered.x + ICON_OFFSET.x, y=rendered.y + ICON_OFFSET.y)
        self.overlay_positions = positions

    def on_render_event(self, kind: str) -> None:
        if kind in RENDER_EVENTS:
            self._overlay.trigger()

    def _on_topology_changed(self) -> None:
        # New nodes need their icon now, not after the next render tick.
        self._overlay.flush()
        self.insight = None
        self.clusters = None
        if self.node_menu is not None and not self.store.has_node(self.node_menu.node_id):
            self.close_node_menu()
        source = self.edge_interaction.source_id
        if source is not None and not self.store.has_node(source):
            self.cancel_edge_interaction()
        for node_id in [n for n in self.suggest_errors if not self.store.has_node(n)]:
            del self.suggest_errors[node_id]

    # ── Menus ────────────────────────────────────────────────────────

    def open_node_menu(self, node_id: str) -> NodeMenu | None:
        surface = self.surface
        if surface is None or not self.store.has_node(node_id):
            return None
        rendered = surface.rendered_position(node_id)
        if rendered is None:
            return None
        origin = surface.container_origin()
        anchor = Position(
            x=origin.x + rendered.x + ICON_OFFSET.x,
            y=origin.y + rendered.y + ICON_OFFSET.y,
        )
        self.close_node_menu()
        self.node_menu = NodeMenu(node_id=node_id, anchor=anchor)
        self.document.add_listener("mousedown", self._on_document_mousedown)
        return self.node_menu

    def close_node_menu(self) -> None:
        if self.node_menu is None:
            return
        self.node_menu = None
        self.document.remove_listener("mousedown", self._on_document_mousedown)

    def _on_document_mousedown(self, point: Position) -> None:
        menu = self.node_menu
        if menu is not None and not menu.bounds.contains(point.x, point.y):
            self.close_node_menu()

    def open_edge_menu(self, target: PointerTarget) -> EdgeMenu | None:
        if target.source is None or target.target is None:
            return None
        self.close_edge_menu()
        self.edge_menu = EdgeMenu(
            edge_id=target.id, source=target.source, target=target.target, anchor=target.position
        )
        self.document.add_listener("scroll", self._on_document_scroll)
        return self.edge_menu

    def close_edge_menu(self) -> None:
        if self.edge_menu is None:
            return
        self.edge_menu = None
        self.document.remove_listener("scroll", self._on_document_scroll)

    def _on_document_scroll(self, point: Position) -> None:
        self.close_edge_menu()

    # ── Pointer and keyboard ─────────────────────────────────────────

    def on_context_tap(self, target: PointerTarget) -> None:
        if target.kind == "node" and target.id is not None:
            self.open_node_menu(target.id)
        elif target.kind == "edge":
            self.open_edge_menu(target)
        else:
            self.pending_node_position = target.position
            self.add_node_prompt_open = True

    def on_tap(self, target: PointerTarget) -> Edge | None:
        self.close_edge_menu()
        interaction = self.edge_interaction
        if interaction.mode is not EdgeMode.ARMED:
            return None

        self.edge_interaction = IDLE
        source = interaction.source_id
        if target.kind != "node" or target.id is None or target.id == source:
            logger.debug("edge_arm_cancelled", source=source)
            return None
        return self.editor.add_edge(source, target.id)

    def on_key_down(self, key: str) -> int:
        if key not in DELETE_KEYS or self.surface is None:
            return 0
        pairs = list(self.surface.selected_edge_pairs())
        if not pairs:
            return 0
        return self.editor.delete_edges(pairs)

    # ── Edge drawing ─────────────────────────────────────────────────

    def _start_edge_interaction(self, mode: EdgeMode, source_id: str) -> bool:
        if not self.store.has_node(source_id):
            return False
        if self.edge_interaction.mode is not EdgeMode.IDLE:
            logger.debug("edge_interaction_replaced", previous=self.edge_interaction.source_id)
        self.edge_interaction = EdgeInteraction(mode=mode, source_id=source_id)
        return True

    def begin_drag(self, source_id: str) -> bool:
        return self._start_edge_interaction(EdgeMode.DRAG, source_id)

    def complete_drag(self, target_id: str) -> Edge | None:
        interaction = self.edge_interaction
        if interaction.mode is not EdgeMode.DRAG:
            return None
        self.edge_interaction = IDLE
        return self.editor.add_edge(interaction.source_id, target_id)

    def arm_edge(self, source_id: str) -> bool:
        armed = self._start_edge_interaction(EdgeMode.ARMED, source_id)
        if armed:
            self.close_node_menu()
        return armed

    def cancel_edge_interaction(self) -> None:
        self.edge_interaction = IDLE

    # ── Node and edge edits from menus and prompts ───────────────────

    def submit_new_node(self, label: str) -> Node | None:
        node = self.editor.add_node(label, self.pending_node_position)
        if node is not None:
            self.pending_node_position = None
            self.add_node_prompt_open = False
        return node

    def rename_from_menu(self, label: str) -> bool:
        if self.node_menu is None:
            return False
        renamed = self.editor.rename_node(self.node_menu.node_id, label)
        self.close_node_menu()
        return renamed

    def delete_from_menu(self) -> bool:
        if self.node_menu is None:
            return False
        # Deleting fires the topology listener, which closes the menu.
        return self.editor.delete_node(self.node_menu.node_id)

    def delete_edge_from_menu(self) -> bool:
        menu = self.edge_menu
        if menu is None:
            return False
        self.close_edge_menu()
        return self.editor.delete_edge(edge_id=menu.edge_id, source=menu.source, target=menu.target)

    def reformat(self) -> bool:
        return self.editor.reformat(self.surface, self._layout)

    def reset(self) -> None:
        self.cancel_edge_interaction()
        self.close_node_menu()
        self.close_edge_menu()
        self.pending_node_position = None
        self.add_node_prompt_open = False
        self.suggest_errors.clear()
        self.insight_error = None
        self.clusters_error = None
        self.store.reset()

    # ── Async request families ───────────────────────────────────────

    async def generate(self, text: str, detail_level: int | None = None) -> bool:
        if self.store.loading:
            logger.debug("generate_ignored_in_flight")
            return False
        if not text.strip():
            return False
        generated = await self.editor.generate_from_text(text, detail_level)
        if generated:
            self.reformat()
        return generated

    async def suggest_children(
        self, node_id: str, detail_level: int | None = None
    ) -> OperationResult[SuggestionBatch] | None:
        if node_id in self.suggesting:
            return None
        self.close_node_menu()
        self.suggesting.add(node_id)
        self.suggest_errors.pop(node_id, None)
        try:
            result = await self.editor.suggest_children(node_id, detail_level)
        finally:
            self.suggesting.discard(node_id)
        if result.error is not None:
            self.suggest_errors[node_id] = result.error
        return result

    async def expand(self, node_id: str, detail_level: int | None = None) -> OperationResult[list[Node]] | None:
        if node_id in self.suggesting:
            return None
        self.close_node_menu()
        self.suggesting.add(node_id)
        self.suggest_errors.pop(node_id, None)
        try:
            result = await self.editor.expand_node(node_id, detail_level)
        finally:
            self.suggesting.discard(node_id)
        if result.error is not None:
            self.suggest_errors[node_id] = result.error
        return result

    def accept_suggestions(self) -> list[Node]:
        return self.editor.accept_suggestions()

    def reject_suggestions(self) -> None:
        self.editor.reject_suggestions()

    async def request_insight(self, detail_level: int | None = None, refresh: bool = False) -> Insight | None:
        if self.insight is not None and not refresh:
            return self.insight
        if self.insight_loading:
            return None
        self.insight_loading = True
        self.insight_error = None
        try:
            result = await self.editor.get_insight(detail_level)
        finally:
            self.insight_loading = False
        if result.stale:
            return None
        self.insight_error = result.error
        self.insight = result.value
        return result.value

    async def request_clusters(self, detail_level: int | None = None) -> list[SemanticCluster] | None:
        if self.clusters_loading:
            return None
        self.clusters_loading = True
        self.clusters_error = None
        self.clusters = None
        try:
            result = await self.editor.get_semantic_clusters(detail_level)
        finally:
            self.clusters_loading = False
        self.clusters_error = result.error
        self.clusters = result.value
        return result.value

    # ── Saved maps ───────────────────────────────────────────────────

    def save_map(self, name: str) -> bool:
        if self.repository is None:
            return False
        return self.repository.save(name) is not None

    def load_map(self, name: str) -> bool:
        if self.repository is None:
            return False
        loaded = self.repository.load(name)
        if loaded:
            self.reformat()
        return loaded

    def delete_map(self, name: str) -> bool:
        if self.repository is None:
            return False
        return self.repository.delete(name)
