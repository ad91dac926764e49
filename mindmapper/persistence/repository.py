"""Named snapshots of the graph store in a namespaced key-value storage."""

from __future__ import annotations

import time
from typing import Callable

from pydantic import ValidationError

from mindmapper.graph.store import GraphStore
from mindmapper.models.schemas import SavedMap
from mindmapper.persistence.storage import KeyValueStorage
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)


def _now_ms() -> float:
    return float(int(time.time() * 1000))


class MapRepository:
    """Save, load, list, rename and delete maps stored under ``<namespace>:<name>``.

    Entries that fail to parse or validate are treated as absent by every
    read path and as garbage by :meth:`cleanup_invalid`. Nothing here holds a
    reference into the live store: saving copies a snapshot, loading replaces
    the store's contents.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        store: GraphStore,
        namespace: str = "mindmaps",
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._storage = storage
        self._store = store
        self._prefix = f"{namespace}:"
        self._clock = clock
        self.current_name: str | None = None

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def _parse(self, key: str) -> SavedMap | None:
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            return SavedMap.model_validate_json(raw)
        except ValidationError as exc:
            logger.debug("saved_map_invalid", key=key, errors=exc.error_count())
            return None

    def _write(self, saved: SavedMap) -> None:
        self._storage.set(self._key(saved.name), saved.model_dump_json(by_alias=True, exclude_none=True))

    def exists(self, name: str) -> bool:
        return self._parse(self._key(name)) is not None

    def get(self, name: str) -> SavedMap | None:
        return self._parse(self._key(name))

    def save(self, name: str) -> SavedMap | None:
        name = name.strip()
        if not name:
            return None

        nodes, edges = self._store.snapshot()
        now = self._clock()
        existing = self._parse(self._key(name))
        saved = SavedMap(
            name=name,
            nodes=nodes,
            edges=edges,
            created_at=existing.created_at if existing is not None else now,
            modified_at=now,
        )
        self._write(saved)
        self.current_name = name
        logger.info("map_saved", name=name, nodes=len(nodes), edges=len(edges), overwrite=existing is not None)
        return saved

    def load(self, name: str) -> bool:
        saved = self._parse(self._key(name))
        if saved is None:
            logger.info("map_load_skipped", name=name)
            return False
        self._store.replace(saved.nodes, saved.edges)
        self.current_name = name
        logger.info("map_loaded", name=name, nodes=len(saved.nodes), edges=len(saved.edges))
        return True

    def delete(self, name: str) -> bool:
        removed = self._storage.delete(self._key(name))
        if self.current_name == name:
            self._store.reset()
            self.current_name = None
        if removed:
            logger.info("map_deleted", name=name)
        return removed

    def list_maps(self) -> list[SavedMap]:
        maps: list[SavedMap] = []
        for key in self._storage.keys(self._prefix):
            saved = self._parse(key)
            if saved is not None:
                maps.append(saved)
        return sorted(maps, key=lambda m: m.created_at, reverse=True)

    def rename(self, old_name: str, new_name: str) -> bool:
        """Move ``old_name`` to ``new_name``. An existing ``new_name`` is overwritten."""
        new_name = new_name.strip()
        saved = self._parse(self._key(old_name))
        if saved is None or not new_name:
            return False
        if new_name == old_name:
            return True

        if self._storage.get(self._key(new_name)) is not None:
            logger.warning("map_rename_overwrites", old_name=old_name, new_name=new_name)
        self._write(saved.model_copy(update={"name": new_name, "modified_at": self._clock()}))
        self._storage.delete(self._key(old_name))
        if self.current_name == old_name:
            self.current_name = new_name
        logger.info("map_renamed", old_name=old_name, new_name=new_name)
        return True

    def cleanup_invalid(self) -> list[str]:
        """Delete every entry in the namespace that does not parse. Returns the removed keys."""
        removed: list[str] = []
        for key in self._storage.keys(self._prefix):
            if self._parse(key) is None:
                self._storage.delete(key)
                removed.append(key)
        if removed:
            logger.info("invalid_maps_removed", count=len(removed))
        return removed
