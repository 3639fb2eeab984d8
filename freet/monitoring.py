"""Query timing instrumentation for the Freet backend.

Relationship handlers issue several small statements per request (existence
check, membership check, set update, re-fetch). Logging the slow ones is the
quickest way to notice a missing index on an association table.
"""

import logging
import time
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

_MAX_LOGGED_STATEMENT_LENGTH = 500


def _truncate(statement: str) -> str:
    if len(statement) <= _MAX_LOGGED_STATEMENT_LENGTH:
        return statement
    return statement[:_MAX_LOGGED_STATEMENT_LENGTH] + "..."


def setup_query_monitoring(
    engine: AsyncEngine,
    slow_query_threshold: float = 0.1,
) -> None:
    """Log a warning for every statement slower than ``slow_query_threshold``.

    Args:
        engine: Async engine whose ``sync_engine`` receives the listeners.
        slow_query_threshold: Threshold in seconds (default 100ms).
    """
    if not hasattr(engine, "sync_engine"):
        logger.warning("Engine does not have sync_engine attribute, skipping query monitoring")
        return

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def receive_before_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def receive_after_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        total = time.perf_counter() - conn.info["query_start_time"].pop()
        if total <= slow_query_threshold:
            return

        logger.warning(
            "Slow query detected (%.3fs): %s",
            total,
            _truncate(statement),
            extra={
                "duration_seconds": total,
                "threshold_seconds": slow_query_threshold,
            },
        )

    logger.info(
        "Query performance monitoring enabled (slow query threshold: %ss)",
        slow_query_threshold,
    )
