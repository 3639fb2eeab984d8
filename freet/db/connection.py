from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from freet.cache import discard_deferred_invalidations, run_deferred_invalidations
from freet.settings import get_settings

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Return the async database URL resolved from application settings."""

    return get_settings().resolved_database_url


def get_database_type() -> str:
    """Return ``postgresql`` or ``sqlite`` for the configured database."""

    return get_settings().database_type


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection.

    SQLite ships with foreign keys disabled; without the pragma the
    association tables would accept references to users or freets that do
    not exist.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine() -> AsyncEngine:
    """Create the async SQLAlchemy engine for the configured database."""

    settings = get_settings()
    url = settings.resolved_database_url

    if settings.database_type == "sqlite":
        engine = create_async_engine(url, future=True, echo=False)
        enable_sqlite_foreign_keys(engine)
    else:
        engine = create_async_engine(
            url,
            future=True,
            echo=False,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=1800,
            pool_timeout=30,
        )

    try:
        from freet.monitoring import setup_query_monitoring

        setup_query_monitoring(
            engine,
            slow_query_threshold=settings.slow_query_threshold,
        )
    except Exception as exc:
        logger.warning("Failed to enable query monitoring: %s", exc)

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


# Global engine/session instances for FastAPI dependency injection
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global engine instance."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create a session factory bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def dispose_engine() -> None:
    """Dispose of the shared engine so pooled connections close on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def commit_session(session: AsyncSession) -> None:
    """Commit, then purge the cache namespaces queued during the transaction."""
    await session.commit()
    await run_deferred_invalidations(session)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency to provide a database session.

    One session spans the whole request: every write issued by a handler,
    including cascades, commits together or rolls back together.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await commit_session(session)
        except Exception:
            await session.rollback()
            discard_deferred_invalidations(session)
            raise


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """Create every table known to the ORM metadata (SQLite development mode)."""

    from freet.db.models import Base

    engine = engine or get_engine()
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
