"""FastAPI dependency wiring for the service layer.

Factories only resolve infrastructure (database session and cache client)
and assemble services; the service modules stay free of web-layer concerns.
"""

from __future__ import annotations

from typing import cast

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from freet.cache import CacheClient, get_cache_client
from freet.db.connection import get_db
from freet.services.directory import FreetStore, UserDirectory
from freet.services.freets import FreetService
from freet.services.relationships import (
    CIRCLE,
    FOLLOW,
    LIKE,
    REFREET,
    CircleService,
    FollowService,
    RelationshipKind,
    RelationshipService,
    build_relationship_service,
)
from freet.services.users import UserService


def relationship_service_dependency(kind: RelationshipKind):
    """Return a dependency yielding the relationship service for ``kind``."""

    def _dependency(
        session: AsyncSession = Depends(get_db),
        cache: CacheClient = Depends(get_cache_client),
    ) -> RelationshipService:
        return build_relationship_service(session, cache, kind)

    _dependency.__name__ = f"get_{kind.name}_service"
    return _dependency


def get_follow_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> FollowService:
    return cast(FollowService, build_relationship_service(session, cache, FOLLOW))


def get_circle_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> CircleService:
    return cast(CircleService, build_relationship_service(session, cache, CIRCLE))


get_like_service = relationship_service_dependency(LIKE)
get_refreet_service = relationship_service_dependency(REFREET)


def get_user_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> UserService:
    return UserService(
        directory=UserDirectory(session),
        follows=build_relationship_service(session, cache, FOLLOW),
    )


def get_freet_service(
    session: AsyncSession = Depends(get_db),
    cache: CacheClient = Depends(get_cache_client),
) -> FreetService:
    """Wire the freet service with the three kinds its cascade touches."""

    return FreetService(
        freets=FreetStore(session),
        directory=UserDirectory(session),
        likes=build_relationship_service(session, cache, LIKE),
        refreets=build_relationship_service(session, cache, REFREET),
        circles=build_relationship_service(session, cache, CIRCLE),
    )


__all__ = [
    "get_circle_service",
    "get_follow_service",
    "get_freet_service",
    "get_like_service",
    "get_refreet_service",
    "get_user_service",
    "relationship_service_dependency",
]
