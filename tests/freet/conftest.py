"""Shared fixtures: in-memory SQLite sessions, seeded entities, cache double, API client."""

from __future__ import annotations

import fnmatch
from collections.abc import AsyncIterator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from freet.cache import get_cache_client
from freet.db.connection import enable_sqlite_foreign_keys, get_db
from freet.db.models import Base, Freet, User
from freet.main import app
from freet.services.directory import FreetStore, UserDirectory
from freet.services.relationships import (
    RelationshipKind,
    RelationshipStore,
    build_relationship_store,
)


class MemoryCache:
    """In-memory cache double that mimics :class:`freet.cache.CacheClient`."""

    def __init__(self) -> None:
        self.store: dict[str, object] = {}
        self.deleted_patterns: list[str] = []

    @property
    def enabled(self) -> bool:
        return True

    async def get_json(self, key: str) -> object | None:
        return self.store.get(key)

    async def set_json(self, key: str, value: object, ttl: int | None = None) -> None:
        self.store[key] = value

    async def delete_pattern(self, pattern: str) -> None:
        self.deleted_patterns.append(pattern)
        for key in [key for key in self.store if fnmatch.fnmatch(key, pattern)]:
            self.store.pop(key, None)


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    """Provide an in-memory SQLite session with foreign keys enforced."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as db_session:
        yield db_session
        if db_session.in_transaction():
            await db_session.rollback()
    await engine.dispose()


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def directory(session: AsyncSession) -> UserDirectory:
    return UserDirectory(session)


@pytest.fixture
def freet_store(session: AsyncSession) -> FreetStore:
    return FreetStore(session)


@pytest_asyncio.fixture
async def users(directory: UserDirectory) -> dict[str, User]:
    """Three registered users keyed by username."""
    return {name: await directory.create_user(name) for name in ("alice", "bob", "carol")}


@pytest_asyncio.fixture
async def freets(freet_store: FreetStore, users: dict[str, User]) -> dict[str, Freet]:
    return {
        "hello": await freet_store.create(author_id=users["alice"].id, content="hello world"),
        "news": await freet_store.create(author_id=users["bob"].id, content="big news"),
    }


@pytest.fixture
def store_for(
    session: AsyncSession, directory: UserDirectory, freet_store: FreetStore
) -> Callable[[RelationshipKind], RelationshipStore]:
    """Build a relationship store for a kind, wired like the application does."""

    def _build(kind: RelationshipKind) -> RelationshipStore:
        return build_relationship_store(
            session, kind, directory=directory, freets=freet_store
        )

    return _build


@pytest_asyncio.fixture
async def api_client(
    session: AsyncSession, memory_cache: MemoryCache
) -> AsyncIterator[AsyncClient]:
    """``AsyncClient`` bound to the app with the test session and cache injected."""

    async def _override_db() -> AsyncIterator[AsyncSession]:
        yield session

    async def _override_cache() -> MemoryCache:
        return memory_cache

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_cache_client] = _override_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def registered(api_client: AsyncClient) -> dict[str, str]:
    """Register alice, bob and carol through the API; returns username -> id."""

    ids: dict[str, str] = {}
    for name in ("alice", "bob", "carol"):
        response = await api_client.post("/api/users", json={"username": name})
        assert response.status_code == 201, response.text
        ids[name] = response.json()["user"]["_id"]
    return ids


@pytest_asyncio.fixture
async def posted(api_client: AsyncClient, registered: dict[str, str]) -> dict[str, str]:
    """Two freets posted through the API; returns label -> freet id."""

    ids: dict[str, str] = {}
    for label, author, content in (
        ("hello", "alice", "hello world"),
        ("news", "bob", "big news"),
    ):
        response = await api_client.post(
            "/api/freets", json={"authorId": registered[author], "content": content}
        )
        assert response.status_code == 201, response.text
        ids[label] = response.json()["freet"]["_id"]
    return ids
