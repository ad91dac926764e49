"""Request/response models for the map API."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from mindmapper.models.schemas import ChildSuggestion, Insight, MapEdge, MapNode, SemanticCluster

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
DetailLevel = Annotated[int, Field(ge=1, le=5, alias="detailLevel")]


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerateMapRequest(_Request):
    text: NonBlank = Field(..., examples=["buy milk, walk dog"])
    detail_level: DetailLevel = 3


class SuggestChildrenRequest(_Request):
    text: NonBlank = Field(..., description="Label of the node to expand")
    parent_id: str | None = Field(default=None, alias="parentId")
    detail_level: DetailLevel = 3


class SuggestChildrenResponse(BaseModel):
    suggestions: list[ChildSuggestion] = Field(default_factory=list)


class InsightRequest(_Request):
    nodes: list[MapNode]
    edges: list[MapEdge] = Field(default_factory=list)
    summaries: list[str] | None = None
    detail_level: DetailLevel = 3


class InsightResponse(BaseModel):
    insight: Insight


class SemanticClustersRequest(_Request):
    nodes: list[MapNode]
    edges: list[MapEdge] = Field(default_factory=list)
    detail_level: DetailLevel = 3


class SemanticClustersResponse(BaseModel):
    clusters: list[SemanticCluster] = Field(default_factory=list)
