"""Unit tests for the saved-map repository."""

from __future__ import annotations

import json

import pytest

from mindmapper.models.schemas import Edge, Node, SuggestionBatch
from mindmapper.persistence.repository import MapRepository
from mindmapper.persistence.storage import MemoryStorage


def _entry(name: str, created_at, nodes=None, edges=None) -> str:
    return json.dumps({
        "name": name,
        "nodes": nodes or [],
        "edges": edges or [],
        "createdAt": created_at,
    })


@pytest.fixture
def populated(store):
    store.add_nodes([Node(id="a", label="A", summary="first"), Node(id="b", label="B")])
    store.add_edges([Edge(id="e1", source="a", target="b"), Edge(source="b", target="b")])
    return store


def test_save_reset_load_round_trip(repository, populated):
    before_nodes, before_edges = populated.snapshot()

    assert repository.save("x") is not None
    populated.reset()
    assert populated.is_empty()
    assert repository.load("x") is True

    assert populated.nodes == before_nodes
    assert populated.edges == before_edges


def test_saved_entry_layout(repository, populated, memory_storage):
    repository.save("x")

    raw = json.loads(memory_storage.get("mindmaps:x"))
    assert raw["name"] == "x"
    assert raw["createdAt"] == 1000.0
    assert raw["modifiedAt"] == 1000.0
    assert {n["id"] for n in raw["nodes"]} == {"a", "b"}


def test_provisional_data_is_never_persisted(repository, populated):
    populated.stage_suggestions(SuggestionBatch(
        parent_id="a",
        nodes=(Node(id="s", label="S", provisional=True),),
        edges=(Edge(source="a", target="s", provisional=True),),
    ))

    saved = repository.save("x")

    assert all(not n.provisional for n in saved.nodes)
    assert "s" not in {n.id for n in saved.nodes}
    assert all(e.target != "s" for e in saved.edges)


def test_resave_preserves_created_at_and_refreshes_modified_at(repository, populated):
    first = repository.save("x")
    second = repository.save("x")

    assert second.created_at == first.created_at
    assert second.modified_at > first.modified_at


def test_save_rejects_blank_name(repository, populated, memory_storage):
    assert repository.save("   ") is None
    assert len(memory_storage) == 0


def test_load_missing_or_corrupt_is_noop(repository, populated, memory_storage):
    memory_storage.set("mindmaps:bad", "{not json")

    assert repository.load("missing") is False
    assert repository.load("bad") is False
    assert len(populated.nodes) == 2


def test_list_skips_corrupt_entries_and_sorts_newest_first(store):
    storage = MemoryStorage({
        "mindmaps:old": _entry("old", 100),
        "mindmaps:broken": "{oops",
        "mindmaps:new": _entry("new", 300),
        "other:ignored": _entry("ignored", 999),
    })
    repo = MapRepository(storage, store)

    assert [m.name for m in repo.list_maps()] == ["new", "old"]

    removed = repo.cleanup_invalid()

    assert removed == ["mindmaps:broken"]
    assert storage.get("mindmaps:broken") is None
    assert storage.get("mindmaps:old") is not None
    assert storage.get("mindmaps:new") is not None


@pytest.mark.parametrize(
    "raw",
    [
        json.dumps({"nodes": [], "edges": [], "createdAt": 1}),
        json.dumps({"name": "n", "edges": [], "createdAt": 1}),
        json.dumps({"name": "n", "nodes": [], "edges": [], "createdAt": "yesterday"}),
        json.dumps({"name": "n", "nodes": [], "edges": [], "createdAt": True}),
        json.dumps(["not", "an", "object"]),
    ],
)
def test_entries_missing_required_fields_are_invalid(store, raw):
    storage = MemoryStorage({"mindmaps:n": raw})
    repo = MapRepository(storage, store)

    assert repo.get("n") is None
    assert repo.list_maps() == []
    assert repo.cleanup_invalid() == ["mindmaps:n"]


def test_rename_is_a_move(repository, populated):
    repository.save("a")
    original = repository.get("a")
    populated.reset()

    assert repository.rename("a", "b") is True

    assert repository.load("a") is False
    assert populated.is_empty()
    assert repository.load("b") is True
    assert populated.nodes == original.nodes
    assert populated.edges == original.edges
    assert repository.get("b").created_at == original.created_at


def test_rename_overwrites_existing_target(repository, populated):
    repository.save("a")
    populated.delete_node("b")
    repository.save("b")

    assert repository.rename("a", "b") is True

    assert repository.exists("a") is False
    assert {n.id for n in repository.get("b").nodes} == {"a", "b"}


def test_rename_follows_current_name(repository, populated):
    repository.save("a")
    repository.rename("a", "renamed")
    assert repository.current_name == "renamed"


def test_rename_missing_source_fails(repository):
    assert repository.rename("nope", "b") is False


def test_delete_current_map_resets_store(repository, populated):
    repository.save("x")

    assert repository.delete("x") is True

    assert populated.is_empty()
    assert repository.current_name is None
    assert repository.exists("x") is False


def test_delete_other_map_keeps_store(repository, populated):
    repository.save("x")
    repository.save("y")

    assert repository.delete("x") is True
    assert len(populated.nodes) == 2


def test_custom_namespace(store, memory_storage):
    repo = MapRepository(memory_storage, store, namespace="team")
    store.add_nodes([Node(id="a", label="A")])
    repo.save("x")
    assert memory_storage.keys() == ["team:x"]
