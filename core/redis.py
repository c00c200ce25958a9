"""
Shared Redis client for durable history records.

Records are opaque JSON bytes, so the client never decodes responses.
The client is created lazily, health-checked with PING on every checkout
and rebuilt after a lost connection.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Final

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL: Final[str] = "redis://redis:6379"
REDIS_URL_ENV_VAR: Final[str] = "REDIS_URL"
CONNECT_TIMEOUT_SECONDS: Final[float] = 2


class _RedisState:
    client: aioredis.Redis | None = None
    lock: asyncio.Lock | None = None


def get_redis_url() -> str:
    """Redis URL from REDIS_URL, falling back to the compose service name."""
    return os.getenv(REDIS_URL_ENV_VAR, "").strip() or DEFAULT_REDIS_URL


async def _healthy(client: aioredis.Redis) -> bool:
    try:
        await client.ping()
    except (RedisConnectionError, OSError):
        return False
    return True


async def get_shared_redis() -> aioredis.Redis:
    """
    Return the process-wide Redis client, connecting on first use.

    Raises:
        redis.exceptions.RedisError: if a fresh connection cannot be made.
    """
    if _RedisState.lock is None:
        _RedisState.lock = asyncio.Lock()

    async with _RedisState.lock:
        client = _RedisState.client
        if client is not None:
            if await _healthy(client):
                return client
            logger.warning("Shared Redis connection lost, reconnecting...")
            _RedisState.client = None

        client = aioredis.from_url(
            get_redis_url(),
            decode_responses=False,
            socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
        )
        await client.ping()
        _RedisState.client = client
        logger.info("Shared Redis client connected")
        return client


async def close_shared_redis() -> None:
    """Close the shared Redis client (call during shutdown)."""
    client, _RedisState.client = _RedisState.client, None
    if client is not None:
        await client.aclose()
        logger.info("Shared Redis client closed")
