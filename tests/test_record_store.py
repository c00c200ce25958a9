from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core import redis as core_redis
from core.exceptions import PersistenceException
from history import RedisRecordStore


class _FakeRedisClient:
    def __init__(self) -> None:
        self.data: dict[str, bytes | str] = {}
        self.ping_calls = 0
        self.fail = False

    async def ping(self) -> None:
        self.ping_calls += 1

    async def get(self, key: str) -> bytes | str | None:
        if self.fail:
            raise RedisConnectionError("connection refused")
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.data[key] = value


@pytest.fixture(autouse=True)
def reset_shared_redis_state() -> None:
    core_redis._RedisState.client = None
    core_redis._RedisState.lock = None
    yield
    core_redis._RedisState.client = None
    core_redis._RedisState.lock = None


@pytest.mark.asyncio
async def test_records_are_namespaced() -> None:
    client = _FakeRedisClient()
    store = RedisRecordStore(client, namespace="test:")

    await store.set("LocationHistory", b"[]")

    assert client.data == {"test:LocationHistory": b"[]"}
    assert await store.get("LocationHistory") == b"[]"
    assert await store.get("MapTrackingHistory") is None


@pytest.mark.asyncio
async def test_decoded_responses_are_returned_as_bytes() -> None:
    client = _FakeRedisClient()
    client.data["tracking:history:isTrackingEnabled"] = "true"
    store = RedisRecordStore(client)

    assert await store.get("isTrackingEnabled") == b"true"


@pytest.mark.asyncio
async def test_redis_errors_become_persistence_errors() -> None:
    client = _FakeRedisClient()
    client.fail = True
    store = RedisRecordStore(client)

    with pytest.raises(PersistenceException) as raised:
        await store.get("LocationHistory")
    assert raised.value.details["key"] == "LocationHistory"

    with pytest.raises(PersistenceException):
        await store.set("LocationHistory", b"[]")


@pytest.mark.asyncio
async def test_default_client_is_the_shared_one(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake_client = _FakeRedisClient()
    from_url_mock = MagicMock(return_value=fake_client)
    monkeypatch.setattr(core_redis, "get_redis_url", lambda: "redis://test:6379")
    monkeypatch.setattr(core_redis.aioredis, "from_url", from_url_mock)

    store = RedisRecordStore()
    await store.set("LocationHistory", b"[]")
    await store.get("LocationHistory")

    from_url_mock.assert_called_once_with(
        "redis://test:6379",
        decode_responses=False,
        socket_connect_timeout=2,
    )
    # First call pings on connect, second call pings the cached client.
    assert fake_client.ping_calls == 2


@pytest.mark.asyncio
async def test_shared_client_reconnects_after_lost_connection(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    stale = MagicMock()
    stale.ping = AsyncMock(side_effect=RedisConnectionError("gone"))
    core_redis._RedisState.client = stale
    fresh = _FakeRedisClient()
    monkeypatch.setattr(core_redis.aioredis, "from_url", MagicMock(return_value=fresh))

    client = await core_redis.get_shared_redis()

    assert client is fresh
    assert fresh.ping_calls == 1


def test_redis_url_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REDIS_URL", raising=False)
    assert core_redis.get_redis_url() == "redis://redis:6379"

    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/1")
    assert core_redis.get_redis_url() == "redis://cache:6380/1"
