"""Durable key/value record stores.

The history layer only needs whole-record reads and overwrites of opaque
bytes. Redis is the production backend; the in-memory store backs tests
and throwaway runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from redis.exceptions import RedisError

from core.exceptions import PersistenceException
from core.redis import get_shared_redis

if TYPE_CHECKING:
    import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key was never written."""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """Overwrite the record; raise PersistenceException on failure."""
        ...


class InMemoryRecordStore:
    """Dict-backed store; contents vanish with the process."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.records: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self.records.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.records[key] = bytes(value)


class RedisRecordStore:
    """Records as plain Redis strings, without expiry."""

    def __init__(
        self,
        client: aioredis.Redis | None = None,
        *,
        namespace: str = "tracking:history:",
    ) -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def _get_client(self) -> aioredis.Redis:
        if self._client is not None:
            return self._client
        return await get_shared_redis()

    async def get(self, key: str) -> bytes | None:
        try:
            client = await self._get_client()
            raw = await client.get(self._key(key))
        except (RedisError, OSError) as exc:
            msg = f"Failed to read record {key}"
            raise PersistenceException(msg, {"key": key, "error": str(exc)}) from exc
        if raw is None:
            return None
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return raw

    async def set(self, key: str, value: bytes) -> None:
        try:
            client = await self._get_client()
            await client.set(self._key(key), value)
        except (RedisError, OSError) as exc:
            msg = f"Failed to write record {key}"
            raise PersistenceException(msg, {"key": key, "error": str(exc)}) from exc


__all__ = ["InMemoryRecordStore", "RecordStore", "RedisRecordStore"]
