"""Collaborators that resolve users and freets for the relationship core."""

from __future__ import annotations

import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from freet.db.models import Freet, User
from freet.errors import Conflict
from freet.services.types import EntitySnapshot

logger = logging.getLogger(__name__)


def user_snapshot(user: User) -> EntitySnapshot:
    return EntitySnapshot(id=user.id, entity_type="user", label=user.username)


def freet_snapshot(freet: Freet) -> EntitySnapshot:
    return EntitySnapshot(id=freet.id, entity_type="freet", label=freet.content)


class UserDirectory:
    """Resolves user identifiers and usernames to canonical user records."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_user(self, username: str) -> User:
        """Register a new account; usernames are unique."""

        if await self.find_one_by_username(username) is not None:
            raise Conflict(
                f"A user with username {username} already exists.",
                tag="usernameTaken",
            )
        user = User(username=username)
        self._session.add(user)
        await self._session.flush()
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    async def find_one_by_user_id(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def find_one_by_username(self, username: str) -> User | None:
        result = await self._session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def resolve(self, ref: str) -> User | None:
        """Resolve ``ref`` as a user id first, then as a username.

        A single query covers both lookups; when one row matches the id and
        another matches the username, the id match wins.
        """

        result = await self._session.execute(
            select(User).where(or_(User.id == ref, User.username == ref))
        )
        candidates = list(result.scalars())
        for candidate in candidates:
            if candidate.id == ref:
                return candidate
        return candidates[0] if candidates else None

    async def resolve_id(self, ref: str) -> str | None:
        user = await self.resolve(ref)
        return user.id if user is not None else None


class FreetStore:
    """Resolves, creates and deletes freets."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, author_id: str, content: str) -> Freet:
        freet = Freet(author_id=author_id, content=content)
        self._session.add(freet)
        await self._session.flush()
        return freet

    async def find_one(self, freet_id: str) -> Freet | None:
        return await self._session.get(Freet, freet_id)

    async def find_all(self, *, author_id: str | None = None) -> list[Freet]:
        """Return freets newest first, optionally restricted to one author."""

        query = select(Freet).order_by(Freet.created_at.desc(), Freet.id)
        if author_id is not None:
            query = query.where(Freet.author_id == author_id)
        result = await self._session.execute(query)
        return list(result.scalars())

    async def resolve_id(self, ref: str) -> str | None:
        freet = await self.find_one(ref)
        return freet.id if freet is not None else None

    async def delete_one(self, freet_id: str) -> bool:
        """Delete the freet row only; dependent aggregates are the caller's job."""

        result = await self._session.execute(delete(Freet).where(Freet.id == freet_id))
        await self._session.flush()
        return result.rowcount > 0
