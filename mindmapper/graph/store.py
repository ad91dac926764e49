"""Authoritative in-memory graph for the map currently being edited."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from mindmapper.models.schemas import Edge, Node, SuggestionBatch
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[], None]


class GraphStore:
    """Nodes, edges and staged AI suggestions for one working document.

    Every mutating primitive leaves the store with no dangling edges and no
    duplicate ``(source, target)`` pairs. None of them raise: unknown ids and
    invariant-violating requests are absorbed as no-ops.

    ``loading`` and ``error`` are presentation flags owned by whoever runs the
    top-level generation request. ``epoch`` increases whenever the node set is
    wholesale replaced or cleared, so async handlers can tell that the graph
    they were issued against is gone.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._edges: list[Edge] = []
        self._suggestions: SuggestionBatch | None = None
        self._listeners: list[Listener] = []
        self._epoch = 0
        self.loading = False
        self.error: str | None = None

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[Edge]:
        # Filtered on read as well as on write.
        return [e for e in self._edges if e.source in self._nodes and e.target in self._nodes]

    @property
    def suggestions(self) -> SuggestionBatch | None:
        return self._suggestions

    @property
    def epoch(self) -> int:
        return self._epoch

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self._occupied_pairs()

    def is_empty(self) -> bool:
        return not self._nodes

    def snapshot(self) -> tuple[list[Node], list[Edge]]:
        """Confirmed nodes and edges only; staged suggestions are never included."""
        nodes = [n for n in self._nodes.values() if not n.provisional]
        kept = {n.id for n in nodes}
        edges = [
            e for e in self.edges
            if not e.provisional and e.source in kept and e.target in kept
        ]
        return nodes, edges

    def to_elements(self) -> list[dict[str, Any]]:
        """Element list for the rendering surface, staged suggestions included."""
        elements: list[dict[str, Any]] = []
        nodes = self.nodes
        edges = self.edges
        if self._suggestions is not None:
            nodes = nodes + list(self._suggestions.nodes)
            edges = edges + list(self._suggestions.edges)

        for node in nodes:
            element: dict[str, Any] = {
                "data": {"id": node.id, "label": node.label},
                "classes": "provisional" if node.provisional else "",
            }
            if node.position is not None:
                element["position"] = {"x": node.position.x, "y": node.position.y}
            elements.append(element)

        for edge in edges:
            classes = []
            if edge.is_circular:
                classes.append("circular")
            if edge.provisional:
                classes.append("provisional")
            elements.append({
                "data": {"id": edge.element_id, "source": edge.source, "target": edge.target},
                "classes": " ".join(classes),
            })
        return elements

    # ── Bulk replace ─────────────────────────────────────────────────

    def set_nodes(self, nodes: Iterable[Node]) -> None:
        self._nodes = self._unique_nodes(nodes)
        self._edges = [e for e in self._edges if e.source in self._nodes and e.target in self._nodes]
        if self._suggestions is not None and self._suggestions.parent_id not in self._nodes:
            self._suggestions = None
        self._epoch += 1
        self._notify()

    def set_edges(self, edges: Iterable[Edge]) -> None:
        self._edges = self._valid_edges(edges, occupied=set())
        self._notify()

    def replace(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Swap in a whole graph at once (generation result, loaded map)."""
        self._nodes = self._unique_nodes(nodes)
        self._edges = self._valid_edges(edges, occupied=set())
        self._suggestions = None
        self._epoch += 1
        self._notify()

    def reset(self) -> None:
        self._nodes = {}
        self._edges = []
        self._suggestions = None
        self.loading = False
        self.error = None
        self._epoch += 1
        self._notify()

    # ── Incremental edits ────────────────────────────────────────────

    def add_nodes(self, new_nodes: Iterable[Node]) -> list[Node]:
        added: list[Node] = []
        for node in new_nodes:
            if node.id in self._nodes:
                logger.debug("duplicate_node_id_skipped", node_id=node.id)
                continue
            self._nodes[node.id] = node
            added.append(node)
        if added:
            self._notify()
        return added

    def add_edges(self, new_edges: Iterable[Edge]) -> list[Edge]:
        occupied = self._occupied_pairs()
        added = self._valid_edges(new_edges, occupied=occupied)
        if added:
            self._edges.extend(added)
            self._notify()
        return added

    def rename_node(self, node_id: str, label: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None or node.label == label:
            return False
        self._nodes[node_id] = node.model_copy(update={"label": label})
        self._notify()
        return True

    def delete_node(self, node_id: str) -> bool:
        if node_id not in self._nodes:
            return False
        # Node and incident edges go in the same transition.
        del self._nodes[node_id]
        self._edges = [e for e in self._edges if e.source != node_id and e.target != node_id]
        if self._suggestions is not None and self._suggestions.parent_id == node_id:
            self._suggestions = None
        self._notify()
        return True

    def remove_edge(
        self,
        edge_id: str | None = None,
        source: str | None = None,
        target: str | None = None,
    ) -> bool:
        """Remove one edge by id when an edge carries it, else by exact pair."""
        if edge_id is not None and any(e.id == edge_id for e in self._edges):
            remaining = [e for e in self._edges if e.id != edge_id]
        elif source is not None and target is not None:
            remaining = [e for e in self._edges if e.pair != (source, target)]
        else:
            return False
        if len(remaining) == len(self._edges):
            return False
        self._edges = remaining
        self._notify()
        return True

    def remove_edges(self, pairs: Iterable[tuple[str, str]]) -> int:
        doomed = set(pairs)
        remaining = [e for e in self._edges if e.pair not in doomed]
        removed = len(self._edges) - len(remaining)
        if removed:
            self._edges = remaining
            self._notify()
        return removed

    # ── Staging area ─────────────────────────────────────────────────

    def stage_suggestions(self, batch: SuggestionBatch) -> bool:
        if batch.parent_id not in self._nodes:
            return False
        self._suggestions = batch
        self._notify()
        return True

    def take_suggestions(self) -> SuggestionBatch | None:
        batch = self._suggestions
        if batch is not None:
            self._suggestions = None
            self._notify()
        return batch

    def clear_suggestions(self) -> None:
        self.take_suggestions()

    # ── Change notification ──────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every topology change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # ── Helpers ──────────────────────────────────────────────────────

    def _occupied_pairs(self) -> set[tuple[str, str]]:
        pairs = {e.pair for e in self._edges}
        if self._suggestions is not None:
            pairs.update(e.pair for e in self._suggestions.edges)
        return pairs

    @staticmethod
    def _unique_nodes(nodes: Iterable[Node]) -> dict[str, Node]:
        result: dict[str, Node] = {}
        for node in nodes:
            if node.id in result:
                logger.debug("duplicate_node_id_skipped", node_id=node.id)
                continue
            result[node.id] = node
        return result

    def _valid_edges(self, edges: Iterable[Edge], occupied: set[tuple[str, str]]) -> list[Edge]:
        """Edges whose endpoints exist and whose pair is not in ``occupied`` (updated in place)."""
        valid: list[Edge] = []
        for edge in edges:
            if edge.source not in self._nodes or edge.target not in self._nodes:
                logger.debug("dangling_edge_dropped", source=edge.source, target=edge.target)
                continue
            if edge.pair in occupied:
                logger.debug("duplicate_edge_skipped", source=edge.source, target=edge.target)
                continue
            occupied.add(edge.pair)
            valid.append(edge)
        return valid
