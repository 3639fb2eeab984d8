from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from freet.settings import get_settings

logger = logging.getLogger(__name__)

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled_until: float = 0.0

_REDIS_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError, OSError)


def relationship_namespace(kind: str) -> str:
    return f"relationships:{kind}"


def relationship_all_key(kind: str) -> str:
    return f"{relationship_namespace(kind)}:all"


def relationship_anchor_key(kind: str, anchor_id: str) -> str:
    return f"{relationship_namespace(kind)}:anchor:{anchor_id}"


def relationship_owner_key(kind: str, owner_id: str) -> str:
    return f"{relationship_namespace(kind)}:owner:{owner_id}"


def relationship_member_key(kind: str, member_id: str) -> str:
    return f"{relationship_namespace(kind)}:member:{member_id}"


async def get_redis() -> Redis | None:
    """Return the shared Redis client, or ``None`` while Redis is unavailable.

    A failed connection attempt disables Redis for
    ``REDIS_RETRY_BACKOFF_SECONDS`` before the next attempt.
    """
    global _redis_client, _redis_disabled_until

    if _redis_client is not None:
        return _redis_client

    if time.monotonic() < _redis_disabled_until:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        settings = get_settings()
        client = Redis.from_url(settings.redis_url, decode_responses=True, encoding="utf-8")
        try:
            await client.ping()
        except _REDIS_UNAVAILABLE as exc:
            logger.warning(
                "Redis connection failed: %s. Caching disabled for %.0fs.",
                exc,
                settings.redis_retry_backoff_seconds,
            )
            _redis_disabled_until = time.monotonic() + settings.redis_retry_backoff_seconds
            await client.aclose()
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    """JSON cache over Redis that degrades to no-ops when Redis is down."""

    def __init__(self, redis: Redis | None, *, default_ttl: int | None = None) -> None:
        self._redis = redis
        self._default_ttl = default_ttl or get_settings().cache_ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return None
        try:
            payload = await self._redis.get(key)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis get failed for key %s: %s", key, exc)
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache payload for key %s", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        encoded = json.dumps(value, default=str)
        try:
            await self._redis.set(key, encoded, ex=ttl or self._default_ttl)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis set failed for key %s: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        if self._redis is None:
            return
        try:
            async for key in self._redis.scan_iter(match=pattern):
                await self._redis.delete(key)
        except _REDIS_UNAVAILABLE as exc:
            logger.debug("Redis delete_pattern failed for %s: %s", pattern, exc)


_DEFERRED_INVALIDATIONS = "freet.deferred_cache_invalidations"


def defer_invalidation(session: AsyncSession, client: CacheClient, pattern: str) -> None:
    """Queue ``pattern`` to be purged again once ``session`` commits."""

    pending = session.info.setdefault(_DEFERRED_INVALIDATIONS, [])
    if (client, pattern) not in pending:
        pending.append((client, pattern))


async def run_deferred_invalidations(session: AsyncSession) -> None:
    """Purge every pattern queued on ``session``; call after a successful commit."""

    for client, pattern in session.info.pop(_DEFERRED_INVALIDATIONS, []):
        await client.delete_pattern(pattern)


def discard_deferred_invalidations(session: AsyncSession) -> None:
    session.info.pop(_DEFERRED_INVALIDATIONS, None)


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled_until
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled_until = 0.0


__all__ = [
    "CacheClient",
    "close_redis",
    "defer_invalidation",
    "discard_deferred_invalidations",
    "get_cache_client",
    "get_redis",
    "relationship_all_key",
    "relationship_anchor_key",
    "relationship_member_key",
    "relationship_namespace",
    "relationship_owner_key",
    "run_deferred_invalidations",
]
