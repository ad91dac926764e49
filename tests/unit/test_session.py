"""Unit tests for session wiring."""

from __future__ import annotations

import pytest

from mindmapper.client.api_client import MapApiClient
from mindmapper.models.schemas import Node
from mindmapper.persistence.storage import MemoryStorage
from mindmapper.session import create_session


def test_sessions_are_independent(settings, collaborator):
    first = create_session(settings, collaborator=collaborator)
    second = create_session(settings, collaborator=collaborator)

    first.store.add_nodes([Node(id="a", label="A")])

    assert second.store.is_empty()
    assert first.controller.store is first.store
    assert first.repository is not second.repository


def test_shared_storage_shares_saved_maps(settings, collaborator, surface):
    storage = MemoryStorage()
    writer = create_session(settings, storage=storage, collaborator=collaborator)
    reader = create_session(settings, storage=storage, collaborator=collaborator, surface=surface)

    writer.store.add_nodes([Node(id="a", label="A")])
    writer.controller.save_map("shared")

    assert reader.controller.load_map("shared") is True
    assert [n.id for n in reader.store.nodes] == ["a"]
    assert reader.controller.surface is surface


@pytest.mark.asyncio
async def test_default_collaborator_is_http_client(settings):
    session = create_session(settings, storage=MemoryStorage())
    assert isinstance(session.collaborator, MapApiClient)
    await session.close()
