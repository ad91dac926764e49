"""Prompt → model → validated JSON for the four map API operations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from pydantic import TypeAdapter, ValidationError

from mindmapper.models.model_router import ModelRouter
from mindmapper.models.schemas import (
    ChildSuggestion,
    Insight,
    MapEdge,
    MapNode,
    MapResponse,
    SemanticCluster,
)
from mindmapper.prompts.registry import PromptRegistry
from mindmapper.utils.exceptions import ModelResponseParsingError
from mindmapper.utils.logging import get_logger
from mindmapper.utils.text_processing import extract_json_payload

logger = get_logger(__name__)

_SUGGESTIONS = TypeAdapter(list[ChildSuggestion])
_CLUSTERS = TypeAdapter(list[SemanticCluster])


def _unwrap(payload: Any, key: str) -> Any:
    """Accept a bare payload as well as one wrapped as ``{"<key>": ...}``."""
    if isinstance(payload, dict) and isinstance(payload.get(key), (list, dict)):
        return payload[key]
    return payload


def _dump(items: Sequence[Any]) -> str:
    return json.dumps([i.model_dump(by_alias=True, exclude_none=True) for i in items], indent=2)


class MindMapService:
    """Runs the map prompts through the model router."""

    def __init__(self, router: ModelRouter, prompts: PromptRegistry | None = None) -> None:
        self._router = router
        self._prompts = prompts or PromptRegistry()

    async def _complete(self, task: str, prompt: str) -> Any:
        content = await self._router.complete(task, self._prompts.system_prompt(), prompt)
        try:
            return extract_json_payload(content)
        except json.JSONDecodeError as exc:
            logger.warning("model_reply_not_json", task=task, preview=content[:200])
            raise ModelResponseParsingError(f"Model reply for '{task}' is not JSON") from exc

    async def generate_map(self, text: str, detail_level: int) -> MapResponse:
        prompt = self._prompts.get_prompt("generate_map", detail_level, user_text=text)
        payload = await self._complete("map_generator", prompt)
        try:
            result = MapResponse.model_validate(payload)
        except ValidationError as exc:
            raise ModelResponseParsingError("Invalid response from LLM") from exc
        logger.info("map_generated", nodes=len(result.nodes), edges=len(result.edges), detail_level=detail_level)
        return result

    async def suggest_children(self, label: str, detail_level: int) -> list[ChildSuggestion]:
        prompt = self._prompts.get_prompt("suggest_children", detail_level, label=label)
        payload = _unwrap(await self._complete("child_suggester", prompt), "suggestions")
        try:
            return _SUGGESTIONS.validate_python(payload)
        except ValidationError as exc:
            raise ModelResponseParsingError("Invalid suggestions from LLM") from exc

    async def get_insight(
        self,
        nodes: Sequence[MapNode],
        edges: Sequence[MapEdge],
        summaries: Sequence[str] | None,
        detail_level: int,
    ) -> Insight:
        prompt = self._prompts.get_prompt(
            "insight",
            detail_level,
            nodes=_dump(nodes),
            edges=_dump(edges),
            summaries=f"SUMMARIES:\n{json.dumps(list(summaries), indent=2)}" if summaries else "",
        )
        payload = _unwrap(await self._complete("insight_analyst", prompt), "insight")
        try:
            return Insight.model_validate(payload)
        except ValidationError as exc:
            raise ModelResponseParsingError("Invalid insight from LLM") from exc

    async def get_semantic_clusters(
        self, nodes: Sequence[MapNode], edges: Sequence[MapEdge], detail_level: int
    ) -> list[SemanticCluster]:
        prompt = self._prompts.get_prompt(
            "semantic_clusters", detail_level, nodes=_dump(nodes), edges=_dump(edges)
        )
        payload = _unwrap(await self._complete("cluster_analyst", prompt), "clusters")
        try:
            return _CLUSTERS.validate_python(payload)
        except ValidationError as exc:
            raise ModelResponseParsingError("Invalid clusters from LLM") from exc
