"""Pydantic models for the mind map graph, saved maps, and LLM payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# ── Graph ────────────────────────────────────────────────────────────


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    label: str
    summary: str | None = None
    provisional: bool = False
    position: Position | None = None


class Edge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    provisional: bool = False

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)

    @property
    def is_circular(self) -> bool:
        return self.source == self.target

    @property
    def element_id(self) -> str:
        """Identifier used by the rendering surface when the edge carries none."""
        return self.id or f"{self.source}__{self.target}"


class SuggestionBatch(BaseModel):
    """AI-suggested children staged for a parent node, pending accept/reject."""

    model_config = ConfigDict(frozen=True)

    parent_id: str
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()


# ── Persistence ──────────────────────────────────────────────────────


class SavedMap(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    nodes: list[Node]
    edges: list[Edge]
    # Epoch milliseconds. Strict so that strings and booleans do not pass as timestamps.
    created_at: float = Field(..., alias="createdAt", strict=True, allow_inf_nan=False)
    modified_at: float | None = Field(default=None, alias="modifiedAt", allow_inf_nan=False)


# ── LLM collaborator payloads ────────────────────────────────────────


class MapNode(BaseModel):
    id: str = Field(..., min_length=1)
    label: str
    summary: str | None = None

    def to_node(self) -> Node:
        return Node(id=self.id, label=self.label, summary=self.summary)


class MapEdge(BaseModel):
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)

    def to_edge(self) -> Edge:
        return Edge(source=self.source, target=self.target)


class MapResponse(BaseModel):
    nodes: list[MapNode]
    edges: list[MapEdge]


class ChildSuggestion(BaseModel):
    label: str = Field(..., min_length=1)


class Insight(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    insight: str
    blind_spot: str = Field(..., alias="blindSpot")
    clusters: str


class SemanticCluster(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    node_ids: list[str] = Field(default_factory=list, alias="nodeIds")
