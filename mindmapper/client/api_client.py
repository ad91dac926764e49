"""Async client for the map API (the LLM collaborator as seen from the editor).

Every response body is validated against the expected pydantic shape before it
is handed back, so nothing unchecked ever reaches the graph store.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from mindmapper.config import Settings
from mindmapper.models.schemas import (
    ChildSuggestion,
    Edge,
    Insight,
    MapResponse,
    Node,
    SemanticCluster,
)
from mindmapper.prompts.detail import clamp_detail_level
from mindmapper.utils.exceptions import (
    CollaboratorHTTPError,
    CollaboratorResponseError,
    CollaboratorUnavailableError,
)
from mindmapper.utils.logging import get_logger
from mindmapper.utils.retry import async_retry

logger = get_logger(__name__)


class _SuggestionsEnvelope(BaseModel):
    suggestions: list[ChildSuggestion]


class _InsightEnvelope(BaseModel):
    insight: Insight


class _ClustersEnvelope(BaseModel):
    clusters: list[SemanticCluster]


class MapCollaborator(Protocol):
    """What the edit operations need from the LLM side."""

    async def generate_map(self, text: str, detail_level: int | None = None) -> MapResponse: ...

    async def suggest_children(
        self, label: str, detail_level: int | None = None, parent_id: str | None = None
    ) -> list[ChildSuggestion]: ...

    async def get_insight(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        summaries: Sequence[str] | None = None,
        detail_level: int | None = None,
    ) -> Insight: ...

    async def get_semantic_clusters(
        self, nodes: Sequence[Node], edges: Sequence[Edge], detail_level: int | None = None
    ) -> list[SemanticCluster]: ...


def _wire_nodes(nodes: Sequence[Node]) -> list[dict[str, Any]]:
    return [n.model_dump(include={"id", "label", "summary"}, exclude_none=True) for n in nodes]


def _wire_edges(edges: Sequence[Edge]) -> list[dict[str, Any]]:
    return [{"source": e.source, "target": e.target} for e in edges]


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error") or ""
        return detail if isinstance(detail, str) else ""
    return ""


class MapApiClient:
    """httpx-backed implementation of :class:`MapCollaborator`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        max_attempts: int = 2,
        default_detail_level: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._max_attempts = max_attempts
        self._default_detail_level = default_detail_level

    @classmethod
    def from_settings(cls, settings: Settings) -> MapApiClient:
        return cls(
            settings.MAP_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_attempts=settings.HTTP_MAX_ATTEMPTS,
            default_detail_level=settings.DEFAULT_DETAIL_LEVEL,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def _level(self, detail_level: int | None) -> int:
        return clamp_detail_level(detail_level, self._default_detail_level)

    async def generate_map(self, text: str, detail_level: int | None = None) -> MapResponse:
        body = await self._post("/api/maps", {"text": text, "detailLevel": self._level(detail_level)})
        return self._validate(MapResponse, body, "/api/maps")

    async def suggest_children(
        self, label: str, detail_level: int | None = None, parent_id: str | None = None
    ) -> list[ChildSuggestion]:
        payload: dict[str, Any] = {"text": label, "detailLevel": self._level(detail_level)}
        if parent_id is not None:
            payload["parentId"] = parent_id
        body = await self._post("/api/maps/suggest-children", payload)
        return self._validate(_SuggestionsEnvelope, body, "/api/maps/suggest-children").suggestions

    async def get_insight(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        summaries: Sequence[str] | None = None,
        detail_level: int | None = None,
    ) -> Insight:
        payload: dict[str, Any] = {
            "nodes": _wire_nodes(nodes),
            "edges": _wire_edges(edges),
            "detailLevel": self._level(detail_level),
        }
        if summaries:
            payload["summaries"] = list(summaries)
        body = await self._post("/api/maps/insight", payload)
        return self._validate(_InsightEnvelope, body, "/api/maps/insight").insight

    async def get_semantic_clusters(
        self, nodes: Sequence[Node], edges: Sequence[Edge], detail_level: int | None = None
    ) -> list[SemanticCluster]:
        payload = {
            "nodes": _wire_nodes(nodes),
            "edges": _wire_edges(edges),
            "detailLevel": self._level(detail_level),
        }
        body = await self._post("/api/maps/semantic-clusters", payload)
        return self._validate(_ClustersEnvelope, body, "/api/maps/semantic-clusters").clusters

    # ── Transport ────────────────────────────────────────────────────

    async def _send(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        response = await self._client.post(path, json=payload)
        response.raise_for_status()
        return response

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        send = async_retry(max_attempts=self._max_attempts)(self._send)
        try:
            response = await send(path, payload)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("map_api_http_error", path=path, status=status)
            raise CollaboratorHTTPError(status, _error_detail(exc.response)) from exc
        except httpx.TransportError as exc:
            logger.warning("map_api_unreachable", path=path, error=str(exc))
            raise CollaboratorUnavailableError(f"Map API unreachable: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("map_api_non_json_response", path=path)
            raise CollaboratorResponseError("Map API returned a non-JSON response") from exc

    @staticmethod
    def _validate(model: type, body: Any, path: str) -> Any:
        try:
            return TypeAdapter(model).validate_python(body)
        except ValidationError as exc:
            logger.warning("map_api_schema_mismatch", path=path, errors=exc.error_count())
            raise CollaboratorResponseError(f"Unexpected response shape from {path}") from exc
