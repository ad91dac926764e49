"""Integration tests for the FastAPI application."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from mindmapper.api.dependencies import get_mindmap_service
from mindmapper.models.schemas import (
    ChildSuggestion,
    Insight,
    MapNode,
    MapResponse,
    SemanticCluster,
)
from mindmapper.utils.exceptions import LLMError, ModelResponseParsingError


@pytest.fixture
def service():
    mock = MagicMock()
    mock.generate_map = AsyncMock(return_value=MapResponse(
        nodes=[MapNode(id="n1", label="Buy milk"), MapNode(id="n2", label="Walk dog")],
        edges=[],
    ))
    mock.suggest_children = AsyncMock(return_value=[ChildSuggestion(label="One")])
    mock.get_insight = AsyncMock(return_value=Insight(insight="i", blind_spot="b", clusters="c"))
    mock.get_semantic_clusters = AsyncMock(
        return_value=[SemanticCluster(name="Chores", node_ids=["n1", "n2"])]
    )
    return mock


@pytest.fixture
def client(service):
    """Create a test client with the LLM stack mocked out."""
    with patch("mindmapper.main.LLMRegistry"):
        from mindmapper.main import app

        app.dependency_overrides[get_mindmap_service] = lambda: service
        with TestClient(app) as c:
            yield c
        app.dependency_overrides.clear()


def test_health_endpoint(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_request_id_is_echoed(client):
    resp = client.get("/api/health", headers={"X-Request-ID": "abc"})
    assert resp.headers["X-Request-ID"] == "abc"


def test_generate_map(client, service):
    resp = client.post("/api/maps", json={"text": "buy milk, walk dog", "detailLevel": 1})

    assert resp.status_code == 200
    assert resp.json() == {
        "nodes": [{"id": "n1", "label": "Buy milk"}, {"id": "n2", "label": "Walk dog"}],
        "edges": [],
    }
    service.generate_map.assert_awaited_once_with("buy milk, walk dog", 1)


def test_generate_map_defaults_detail_level(client, service):
    client.post("/api/maps", json={"text": "notes"})
    service.generate_map.assert_awaited_once_with("notes", 3)


@pytest.mark.parametrize(
    "body",
    [{}, {"text": "   "}, {"text": "x", "detailLevel": 0}, {"text": "x", "detailLevel": 6}],
)
def test_generate_map_rejects_bad_input(client, service, body):
    resp = client.post("/api/maps", json=body)
    assert resp.status_code == 422
    service.generate_map.assert_not_awaited()


def test_invalid_llm_reply_is_500(client, service):
    service.generate_map.side_effect = ModelResponseParsingError("bad")
    resp = client.post("/api/maps", json={"text": "x"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Invalid response from LLM"}


def test_llm_failure_is_500(client, service):
    service.suggest_children.side_effect = LLMError("all models failed")
    resp = client.post("/api/maps/suggest-children", json={"text": "x"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "LLM error"}


def test_suggest_children(client, service):
    resp = client.post(
        "/api/maps/suggest-children", json={"text": "Chores", "parentId": "n1", "detailLevel": 2}
    )
    assert resp.status_code == 200
    assert resp.json() == {"suggestions": [{"label": "One"}]}
    service.suggest_children.assert_awaited_once_with("Chores", 2)


def test_insight_uses_camel_case(client, service):
    resp = client.post("/api/maps/insight", json={
        "nodes": [{"id": "n1", "label": "Buy milk"}],
        "edges": [],
        "summaries": ["errand"],
    })
    assert resp.status_code == 200
    assert resp.json() == {"insight": {"insight": "i", "blindSpot": "b", "clusters": "c"}}


def test_semantic_clusters(client):
    resp = client.post("/api/maps/semantic-clusters", json={
        "nodes": [{"id": "n1", "label": "Buy milk"}, {"id": "n2", "label": "Walk dog"}],
        "edges": [],
    })
    assert resp.status_code == 200
    assert resp.json() == {"clusters": [{"name": "Chores", "nodeIds": ["n1", "n2"]}]}
