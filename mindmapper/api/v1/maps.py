"""Map API endpoints: generate, suggest children, insight and semantic clusters."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from mindmapper.api.dependencies import get_mindmap_service
from mindmapper.api.v1.schemas.maps import (
    GenerateMapRequest,
    InsightRequest,
    InsightResponse,
    SemanticClustersRequest,
    SemanticClustersResponse,
    SuggestChildrenRequest,
    SuggestChildrenResponse,
)
from mindmapper.models.schemas import MapResponse
from mindmapper.services.mindmap_service import MindMapService
from mindmapper.utils.exceptions import LLMError, ModelResponseParsingError
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/maps", tags=["maps"])


def _llm_failure(exc: LLMError, operation: str) -> HTTPException:
    if isinstance(exc, ModelResponseParsingError):
        logger.warning("llm_response_invalid", operation=operation, error=str(exc))
        return HTTPException(status_code=500, detail="Invalid response from LLM")
    logger.error("llm_call_failed", operation=operation, error=str(exc))
    return HTTPException(status_code=500, detail="LLM error")


@router.post("", response_model=MapResponse, response_model_exclude_none=True)
async def generate_map(
    request: GenerateMapRequest,
    service: MindMapService = Depends(get_mindmap_service),
) -> MapResponse:
    """Turn free-form text into a node/edge mind map."""
    try:
        return await service.generate_map(request.text, request.detail_level)
    except LLMError as exc:
        raise _llm_failure(exc, "generate_map")


@router.post("/suggest-children", response_model=SuggestChildrenResponse)
async def suggest_children(
    request: SuggestChildrenRequest,
    service: MindMapService = Depends(get_mindmap_service),
) -> SuggestChildrenResponse:
    try:
        suggestions = await service.suggest_children(request.text, request.detail_level)
    except LLMError as exc:
        raise _llm_failure(exc, "suggest_children")
    return SuggestChildrenResponse(suggestions=suggestions)


@router.post("/insight", response_model=InsightResponse)
async def get_insight(
    request: InsightRequest,
    service: MindMapService = Depends(get_mindmap_service),
) -> InsightResponse:
    try:
        insight = await service.get_insight(
            request.nodes, request.edges, request.summaries, request.detail_level
        )
    except LLMError as exc:
        raise _llm_failure(exc, "insight")
    return InsightResponse(insight=insight)


@router.post("/semantic-clusters", response_model=SemanticClustersResponse)
async def get_semantic_clusters(
    request: SemanticClustersRequest,
    service: MindMapService = Depends(get_mindmap_service),
) -> SemanticClustersResponse:
    try:
        clusters = await service.get_semantic_clusters(request.nodes, request.edges, request.detail_level)
    except LLMError as exc:
        raise _llm_failure(exc, "semantic_clusters")
    return SemanticClustersResponse(clusters=clusters)
