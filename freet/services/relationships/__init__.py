"""Generic relationship core shared by follows, likes, refreets and circles."""

from freet.services.relationships.cache import RelationshipCache
from freet.services.relationships.follow import FollowGraph
from freet.services.relationships.kinds import (
    CIRCLE,
    FOLLOW,
    LIKE,
    REFREET,
    MemberSet,
    RelationshipKind,
)
from freet.services.relationships.service import (
    CircleService,
    FollowService,
    RelationshipService,
    build_relationship_service,
    build_relationship_store,
)
from freet.services.relationships.store import RelationshipStore

__all__ = [
    "CIRCLE",
    "CircleService",
    "FOLLOW",
    "FollowGraph",
    "FollowService",
    "LIKE",
    "MemberSet",
    "REFREET",
    "RelationshipCache",
    "RelationshipKind",
    "RelationshipService",
    "RelationshipStore",
    "build_relationship_service",
    "build_relationship_store",
]
