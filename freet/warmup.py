"""Startup warmup so the first request does not pay for cold connections."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def warmup_database(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    """Open a pooled connection and issue ``SELECT 1``.

    Failures are logged and swallowed: the API still starts and the first real
    query surfaces the problem through the database exception handlers.
    """
    try:
        if resolve_engine is None:
            from freet.db.connection import get_engine as resolve_engine

        start = time.perf_counter()
        engine = resolve_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Database connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Database warmup failed: %s", exc)


async def warmup_redis() -> None:
    """Establish the Redis connection; degrades quietly when Redis is down."""
    from freet.cache import get_redis

    try:
        start = time.perf_counter()
        redis = await get_redis()
        if redis is None:
            logger.info("Redis warmup skipped (connection unavailable)")
            return

        await redis.ping()
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Redis connection warmed up (%.0fms)", elapsed)
    except Exception as exc:
        logger.warning("Redis warmup failed: %s", exc)


async def warmup_all(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    logger.info("=" * 60)
    logger.info("Warming up connections...")
    start = time.perf_counter()

    await warmup_database(resolve_engine=resolve_engine)
    await warmup_redis()

    elapsed = (time.perf_counter() - start) * 1000
    logger.info("Warmup complete (%.0fms)", elapsed)
    logger.info("=" * 60)
