"""Edit operations composed from graph store primitives.

Async operations talk to the map API through a :class:`MapCollaborator` and
never raise collaborator failures to the caller: they come back as an error
string. Every response is checked for relevance before touching the store, so
a reply that arrives after the graph was reset or the target node deleted is
dropped instead of resurrecting removed state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from mindmapper.client.api_client import MapCollaborator
from mindmapper.graph.store import GraphStore
from mindmapper.interaction.layout import DEFAULT_LAYOUT, LayoutConfig
from mindmapper.interaction.surface import RenderSurface
from mindmapper.models.schemas import (
    ChildSuggestion,
    Edge,
    Insight,
    Node,
    Position,
    SemanticCluster,
    SuggestionBatch,
)
from mindmapper.utils.exceptions import CollaboratorError
from mindmapper.utils.logging import get_logger
from mindmapper.utils.text_processing import normalize_label, truncate_content

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    value: T | None = None
    error: str | None = None
    # True when the response came back after its target went away.
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.stale and self.value is not None


def new_node_id() -> str:
    return str(uuid.uuid4())


def new_edge_id(source: str, target: str) -> str:
    return f"{source}__{target}__{uuid.uuid4()}"


def suggested_node_id(parent_id: str) -> str:
    return f"{parent_id}__ai__{uuid.uuid4()}"


class MindMapEditor:
    """High-level edits on a :class:`GraphStore`."""

    def __init__(
        self,
        store: GraphStore,
        collaborator: MapCollaborator,
        *,
        default_detail_level: int = 3,
        max_input_chars: int = 20_000,
    ) -> None:
        self._store = store
        self._collaborator = collaborator
        self._default_detail_level = default_detail_level
        self._max_input_chars = max_input_chars
        # Id of the newest generation request; only it may clear ``store.loading``.
        self._generation = 0

    @property
    def store(self) -> GraphStore:
        return self._store

    def _level(self, detail_level: int | None) -> int:
        return self._default_detail_level if detail_level is None else detail_level

    # ── Generation ───────────────────────────────────────────────────

    async def generate_from_text(self, text: str, detail_level: int | None = None) -> bool:
        """Replace the whole graph with one generated from ``text``.

        On failure the graph is cleared and ``store.error`` carries the message.
        Returns True when a new graph was applied.
        """
        store = self._store
        epoch = store.epoch
        self._generation += 1
        request_id = self._generation
        store.loading = True
        store.error = None
        text = truncate_content(text.strip(), self._max_input_chars)

        response = None
        failure: str | None = None
        try:
            response = await self._collaborator.generate_map(text, self._level(detail_level))
        except CollaboratorError as exc:
            failure = str(exc) or "Unknown error"
        finally:
            stale = store.epoch != epoch
            if request_id == self._generation:
                store.loading = False

        if stale:
            logger.info("stale_generation_discarded", failed=failure is not None)
            return False

        if response is None:
            logger.warning("generation_failed", error=failure)
            store.replace([], [])
            store.error = failure
            return False

        store.replace(
            [n.to_node() for n in response.nodes],
            [e.to_edge() for e in response.edges],
        )
        logger.info("map_generated", nodes=len(store.nodes), edges=len(store.edges))
        return True

    # ── AI suggestions ───────────────────────────────────────────────

    async def _fetch_children(
        self, node_id: str, detail_level: int | None
    ) -> OperationResult[list[ChildSuggestion]]:
        node = self._store.get_node(node_id)
        if node is None:
            return OperationResult(stale=True)
        epoch = self._store.epoch

        try:
            suggestions = await self._collaborator.suggest_children(
                node.label, self._level(detail_level), parent_id=node.id
            )
        except CollaboratorError as exc:
            logger.warning("suggest_children_failed", node_id=node_id, error=str(exc))
            return OperationResult(error=str(exc) or "Unknown error")

        if self._store.epoch != epoch or not self._store.has_node(node_id):
            logger.info("stale_suggestions_discarded", node_id=node_id)
            return OperationResult(stale=True)
        return OperationResult(value=suggestions)

    @staticmethod
    def _materialize(
        parent_id: str, suggestions: Sequence[ChildSuggestion], provisional: bool
    ) -> tuple[list[Node], list[Edge]]:
        nodes: list[Node] = []
        for suggestion in suggestions:
            label = normalize_label(suggestion.label)
            if label:
                nodes.append(Node(id=suggested_node_id(parent_id), label=label, provisional=provisional))
        edges = [Edge(source=parent_id, target=n.id, provisional=provisional) for n in nodes]
        return nodes, edges

    async def suggest_children(
        self, node_id: str, detail_level: int | None = None
    ) -> OperationResult[SuggestionBatch]:
        """Stage provisional children for ``node_id`` until accepted or rejected."""
        fetched = await self._fetch_children(node_id, detail_level)
        if fetched.value is None:
            return OperationResult(error=fetched.error, stale=fetched.stale)

        nodes, edges = self._materialize(node_id, fetched.value, provisional=True)
        batch = SuggestionBatch(parent_id=node_id, nodes=tuple(nodes), edges=tuple(edges))
        self._store.stage_suggestions(batch)
        logger.info("suggestions_staged", node_id=node_id, count=len(nodes))
        return OperationResult(value=batch)

    def accept_suggestions(self) -> list[Node]:
        batch = self._store.take_suggestions()
        if batch is None:
            return []
        if not self._store.has_node(batch.parent_id):
            logger.info("suggestions_dropped_parent_missing", node_id=batch.parent_id)
            return []
        added = self._store.add_nodes(n.model_copy(update={"provisional": False}) for n in batch.nodes)
        self._store.add_edges(e.model_copy(update={"provisional": False}) for e in batch.edges)
        logger.info("suggestions_accepted", node_id=batch.parent_id, count=len(added))
        return added

    def reject_suggestions(self) -> None:
        if self._store.take_suggestions() is not None:
            logger.info("suggestions_rejected")

    async def expand_node(self, node_id: str, detail_level: int | None = None) -> OperationResult[list[Node]]:
        """Fetch children for ``node_id`` and merge them straight into the graph."""
        fetched = await self._fetch_children(node_id, detail_level)
        if fetched.value is None:
            return OperationResult(error=fetched.error, stale=fetched.stale)

        nodes, edges = self._materialize(node_id, fetched.value, provisional=False)
        added = self._store.add_nodes(nodes)
        self._store.add_edges(edges)
        logger.info("node_expanded", node_id=node_id, count=len(added))
        return OperationResult(value=added)

    # ── Manual edits ─────────────────────────────────────────────────

    def add_node(self, label: str, position: Position | None = None) -> Node | None:
        label = normalize_label(label)
        if not label:
            return None
        node = Node(id=new_node_id(), label=label, position=position)
        self._store.add_nodes([node])
        logger.debug("node_added", node_id=node.id)
        return node

    def rename_node(self, node_id: str, label: str) -> bool:
        label = normalize_label(label)
        if not label:
            return False
        return self._store.rename_node(node_id, label)

    def delete_node(self, node_id: str) -> bool:
        deleted = self._store.delete_node(node_id)
        if deleted:
            logger.debug("node_deleted", node_id=node_id)
        return deleted

    def add_edge(self, source: str, target: str) -> Edge | None:
        store = self._store
        if not store.has_node(source) or not store.has_node(target):
            return None
        if store.has_edge(source, target):
            logger.debug("duplicate_edge_rejected", source=source, target=target)
            return None
        edge = Edge(id=new_edge_id(source, target), source=source, target=target)
        return edge if store.add_edges([edge]) else None

    def delete_edge(
        self,
        edge_id: str | None = None,
        source: str | None = None,
        target: str | None = None,
    ) -> bool:
        return self._store.remove_edge(edge_id=edge_id, source=source, target=target)

    def delete_edges(self, pairs: Sequence[tuple[str, str]]) -> int:
        """Remove every edge whose ``(source, target)`` is in ``pairs``."""
        removed = self._store.remove_edges(pairs)
        if removed:
            logger.debug("edges_deleted", count=removed)
        return removed

    def reformat(self, surface: RenderSurface | None, layout: LayoutConfig | None = None) -> bool:
        """Ask the surface to lay the graph out again. Logical graph is untouched."""
        if surface is None:
            return False
        surface.run_layout((layout or DEFAULT_LAYOUT).to_options())
        return True

    # ── Analyses ─────────────────────────────────────────────────────

    async def get_insight(self, detail_level: int | None = None) -> OperationResult[Insight]:
        nodes, edges = self._store.snapshot()
        summaries = [n.summary for n in nodes if n.summary]
        epoch = self._store.epoch
        try:
            insight = await self._collaborator.get_insight(
                nodes, edges, summaries or None, self._level(detail_level)
            )
        except CollaboratorError as exc:
            logger.warning("insight_failed", error=str(exc))
            return OperationResult(error=str(exc) or "Unknown error")

        if self._store.epoch != epoch:
            logger.info("stale_insight_discarded")
            return OperationResult(stale=True)
        return OperationResult(value=insight)

    async def get_semantic_clusters(
        self, detail_level: int | None = None
    ) -> OperationResult[list[SemanticCluster]]:
        nodes, edges = self._store.snapshot()
        epoch = self._store.epoch
        try:
            clusters = await self._collaborator.get_semantic_clusters(
                nodes, edges, self._level(detail_level)
            )
        except CollaboratorError as exc:
            logger.warning("clustering_failed", error=str(exc))
            return OperationResult(error=str(exc) or "Unknown error")

        if self._store.epoch != epoch:
            return OperationResult(stale=True)

        kept: list[SemanticCluster] = []
        for cluster in clusters:
            node_ids = [i for i in cluster.node_ids if self._store.has_node(i)]
            if node_ids:
                kept.append(cluster.model_copy(update={"node_ids": node_ids}))
        return OperationResult(value=kept)
