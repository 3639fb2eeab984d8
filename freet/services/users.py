"""User registration and lookup."""

from __future__ import annotations

import logging

from freet.db.models import User
from freet.errors import NotFound
from freet.schemas.entities import UserResponse
from freet.services.directory import UserDirectory
from freet.services.relationships.service import RelationshipService

logger = logging.getLogger(__name__)


def user_to_schema(user: User) -> UserResponse:
    return UserResponse(id=user.id, username=user.username, date_joined=user.created_at)


class UserService:
    """Registers users together with their follow aggregate."""

    def __init__(self, *, directory: UserDirectory, follows: RelationshipService) -> None:
        self._directory = directory
        self._follows = follows

    async def register(self, username: str) -> UserResponse:
        user = await self._directory.create_user(username)
        await self._follows.store.create(user.id)
        await self._follows.invalidate_cache()
        logger.debug("Created follow aggregate for new user %s", user.id)
        return user_to_schema(user)

    async def get(self, ref: str) -> UserResponse:
        """Look ``ref`` up as a user id, then as a username."""

        user = await self._directory.resolve(ref)
        if user is None:
            raise NotFound(f"User {ref} does not exist.", tag="userNotFound")
        return user_to_schema(user)


__all__ = ["UserService", "user_to_schema"]
