"""Unit tests for the map API client."""

from __future__ import annotations

import json

import httpx
import pytest

from mindmapper.client.api_client import MapApiClient
from mindmapper.models.schemas import Edge, Node
from mindmapper.utils.exceptions import (
    CollaboratorHTTPError,
    CollaboratorResponseError,
    CollaboratorUnavailableError,
)


def _client(handler, max_attempts: int = 1) -> MapApiClient:
    return MapApiClient(
        "http://maps.test/",
        max_attempts=max_attempts,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_generate_map_posts_text_and_level():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "nodes": [{"id": "n1", "label": "Buy milk"}, {"id": "n2", "label": "Walk dog"}],
            "edges": [],
        })

    client = _client(handler)
    result = await client.generate_map("buy milk, walk dog", 1)
    await client.close()

    assert seen == {"path": "/api/maps", "body": {"text": "buy milk, walk dog", "detailLevel": 1}}
    assert [n.label for n in result.nodes] == ["Buy milk", "Walk dog"]


@pytest.mark.asyncio
async def test_detail_level_is_clamped():
    levels = []

    def handler(request):
        levels.append(json.loads(request.content)["detailLevel"])
        return httpx.Response(200, json={"suggestions": []})

    client = _client(handler)
    await client.suggest_children("x", 9)
    await client.suggest_children("x", 0)
    await client.suggest_children("x")

    assert levels == [5, 1, 3]


@pytest.mark.asyncio
async def test_suggest_children_unwraps_envelope():
    def handler(request):
        body = json.loads(request.content)
        assert body["parentId"] == "p1"
        return httpx.Response(200, json={"suggestions": [{"label": "One"}, {"label": "Two"}]})

    result = await _client(handler).suggest_children("Topic", 2, parent_id="p1")
    assert [s.label for s in result] == ["One", "Two"]


@pytest.mark.asyncio
async def test_insight_sends_nodes_edges_and_summaries():
    def handler(request):
        body = json.loads(request.content)
        assert request.url.path == "/api/maps/insight"
        assert body["nodes"] == [{"id": "a", "label": "A", "summary": "s"}]
        assert body["edges"] == [{"source": "a", "target": "a"}]
        assert body["summaries"] == ["s"]
        return httpx.Response(200, json={
            "insight": {"insight": "i", "blindSpot": "b", "clusters": "c"},
        })

    insight = await _client(handler).get_insight(
        [Node(id="a", label="A", summary="s")], [Edge(source="a", target="a")], ["s"], 3
    )
    assert insight.blind_spot == "b"


@pytest.mark.asyncio
async def test_semantic_clusters():
    def handler(request):
        return httpx.Response(200, json={"clusters": [{"name": "Chores", "nodeIds": ["n1", "n2"]}]})

    clusters = await _client(handler).get_semantic_clusters([], [], 3)
    assert clusters[0].node_ids == ["n1", "n2"]


@pytest.mark.asyncio
async def test_http_error_becomes_typed_failure():
    def handler(request):
        return httpx.Response(500, json={"detail": "LLM error"})

    with pytest.raises(CollaboratorHTTPError) as info:
        await _client(handler).generate_map("x", 3)

    assert info.value.status_code == 500
    assert str(info.value) == "API error (500): LLM error"


@pytest.mark.asyncio
async def test_schema_mismatch_becomes_response_error():
    def handler(request):
        return httpx.Response(200, json={"nodes": [{"label": "no id"}], "edges": []})

    with pytest.raises(CollaboratorResponseError):
        await _client(handler).generate_map("x", 3)


@pytest.mark.asyncio
async def test_non_json_body_becomes_response_error():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(CollaboratorResponseError):
        await _client(handler).suggest_children("x", 3)


@pytest.mark.asyncio
async def test_transport_failure_is_retried_then_reported(monkeypatch):
    monkeypatch.setattr("mindmapper.utils.retry.asyncio.sleep", _no_sleep)
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(CollaboratorUnavailableError):
        await _client(handler, max_attempts=3).generate_map("x", 3)
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_retryable_status_recovers(monkeypatch):
    monkeypatch.setattr("mindmapper.utils.retry.asyncio.sleep", _no_sleep)
    responses = iter([httpx.Response(503), httpx.Response(200, json={"suggestions": []})])

    result = await _client(lambda request: next(responses), max_attempts=2).suggest_children("x", 3)
    assert result == []


@pytest.mark.asyncio
async def test_client_error_status_is_not_retried():
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(422, json={"detail": [{"msg": "field required"}]})

    with pytest.raises(CollaboratorHTTPError) as info:
        await _client(handler, max_attempts=3).generate_map("x", 3)
    assert len(attempts) == 1
    assert str(info.value) == "API error (422)"


async def _no_sleep(_delay: float) -> None:
    return None


def test_from_settings(settings):
    client = MapApiClient.from_settings(settings)
    assert client._client.base_url.host == "localhost"
    assert client._client.base_url.port == 4000
