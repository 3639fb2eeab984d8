"""Tests for the Redis-backed JSON cache and its connection backoff."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import ClassVar
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from freet import cache


@pytest.mark.asyncio
async def test_disabled_client_is_a_no_op() -> None:
    client = cache.CacheClient(None)

    await client.set_json("relationships:like:all", [1, 2])
    await client.delete_pattern("relationships:like:*")

    assert client.enabled is False
    assert await client.get_json("relationships:like:all") is None


@pytest.mark.asyncio
async def test_round_trip_uses_ttl() -> None:
    mock_redis = MagicMock()
    mock_redis.set = AsyncMock()
    mock_redis.get = AsyncMock(return_value=json.dumps({"_id": "L1", "users": []}))
    client = cache.CacheClient(mock_redis, default_ttl=60)

    await client.set_json("relationships:like:anchor:F1", {"_id": "L1", "users": []})

    mock_redis.set.assert_awaited_once_with(
        "relationships:like:anchor:F1", json.dumps({"_id": "L1", "users": []}), ex=60
    )
    assert await client.get_json("relationships:like:anchor:F1") == {"_id": "L1", "users": []}


@pytest.mark.asyncio
async def test_connection_errors_degrade_to_miss() -> None:
    mock_redis = MagicMock()
    mock_redis.get = AsyncMock(side_effect=RedisConnectionError("Connection failed"))
    client = cache.CacheClient(mock_redis)

    assert await client.get_json("relationships:follow:all") is None


@pytest.mark.asyncio
async def test_other_errors_propagate() -> None:
    mock_redis = MagicMock()
    mock_redis.get = AsyncMock(side_effect=ValueError("Not a Redis error"))
    client = cache.CacheClient(mock_redis)

    with pytest.raises(ValueError):
        await client.get_json("relationships:follow:all")


@pytest.mark.asyncio
async def test_undecodable_payload_is_discarded() -> None:
    mock_redis = MagicMock()
    mock_redis.get = AsyncMock(return_value="{not json")
    client = cache.CacheClient(mock_redis)

    assert await client.get_json("relationships:circle:all") is None


@pytest.mark.asyncio
async def test_delete_pattern_scans_namespace() -> None:
    async def scan_iter(match: str):
        for key in ("relationships:like:all", "relationships:like:anchor:F1"):
            yield key

    mock_redis = MagicMock()
    mock_redis.scan_iter = MagicMock(side_effect=scan_iter)
    mock_redis.delete = AsyncMock()
    client = cache.CacheClient(mock_redis)

    await client.delete_pattern("relationships:like:*")

    mock_redis.scan_iter.assert_called_once_with(match="relationships:like:*")
    assert mock_redis.delete.await_count == 2


def test_key_helpers_share_the_kind_namespace() -> None:
    keys = [
        cache.relationship_all_key("circle"),
        cache.relationship_anchor_key("circle", "C1"),
        cache.relationship_owner_key("circle", "U1"),
        cache.relationship_member_key("circle", "U2"),
    ]

    assert all(key.startswith(cache.relationship_namespace("circle") + ":") for key in keys)


@dataclass
class _StubRedis:
    """Tiny Redis stand-in that can emulate connection failures."""

    should_fail: bool
    closed: bool = False

    async def ping(self) -> None:
        if self.should_fail:
            raise RedisConnectionError("Redis unavailable for test")

    async def aclose(self) -> None:
        self.closed = True


class _StubRedisFactory:
    """Mimics :meth:`redis.asyncio.Redis.from_url` with queued outcomes."""

    failures: ClassVar[list[bool]] = []
    created_clients: ClassVar[list[_StubRedis]] = []

    @classmethod
    def from_url(cls, *_: object, **__: object) -> _StubRedis:
        client = _StubRedis(should_fail=cls.failures.pop(0))
        cls.created_clients.append(client)
        return client


@pytest.mark.asyncio
async def test_get_redis_retries_after_cooldown(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """Connection attempts resume once the backoff window has passed."""

    await cache.close_redis()
    _StubRedisFactory.failures = [True, False]
    _StubRedisFactory.created_clients = []
    monkeypatch.setattr(cache, "Redis", _StubRedisFactory)

    current_time = {"value": 0.0}
    monkeypatch.setattr(cache.time, "monotonic", lambda: current_time["value"])
    backoff = cache.get_settings().redis_retry_backoff_seconds
    caplog.set_level(logging.WARNING)

    assert await cache.get_redis() is None
    assert _StubRedisFactory.created_clients[0].closed is True
    assert "Caching disabled" in caplog.text

    current_time["value"] = backoff / 2
    assert await cache.get_redis() is None
    assert len(_StubRedisFactory.created_clients) == 1

    current_time["value"] = backoff + 1
    assert await cache.get_redis() is _StubRedisFactory.created_clients[1]

    await cache.close_redis()
    assert _StubRedisFactory.created_clients[1].closed is True
