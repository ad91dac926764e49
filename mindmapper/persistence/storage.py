"""Flat string-keyed storage backends for saved maps."""

from __future__ import annotations

from typing import Iterator, Protocol

import redis

from mindmapper.config import Settings
from mindmapper.utils.exceptions import StorageError
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(Protocol):
    """Synchronous get/set/delete/enumerate over string keys and values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self, prefix: str = "") -> list[str]: ...


class MemoryStorage:
    """Dict-backed storage. Lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))


class RedisStorage:
    """Redis-backed storage using a synchronous client with decoded responses."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisStorage:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> str | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise StorageError(f"Redis GET failed for {key!r}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            self._client.set(key, value)
        except redis.RedisError as exc:
            raise StorageError(f"Redis SET failed for {key!r}: {exc}") from exc

    def delete(self, key: str) -> bool:
        try:
            return bool(self._client.delete(key))
        except redis.RedisError as exc:
            raise StorageError(f"Redis DEL failed for {key!r}: {exc}") from exc

    def keys(self, prefix: str = "") -> list[str]:
        try:
            return list(self._client.scan_iter(match=f"{prefix}*"))
        except redis.RedisError as exc:
            raise StorageError(f"Redis SCAN failed for prefix {prefix!r}: {exc}") from exc

    def close(self) -> None:
        self._client.close()


def build_storage(settings: Settings) -> KeyValueStorage:
    if settings.STORAGE_BACKEND == "redis":
        logger.info("storage_backend_selected", backend="redis", url=settings.REDIS_URL)
        return RedisStorage.from_url(settings.REDIS_URL)
    logger.info("storage_backend_selected", backend="memory")
    return MemoryStorage()
