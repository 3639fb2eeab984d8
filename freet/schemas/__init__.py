"""Pydantic schemas for API requests and responses."""

from freet.schemas.entities import (  # noqa: F401
    FreetCreate,
    FreetEnvelope,
    FreetResponse,
    UserCreate,
    UserEnvelope,
    UserResponse,
)
from freet.schemas.relationships import (  # noqa: F401
    CircleCreate,
    CircleEnvelope,
    CircleFreetUpdate,
    CircleMemberUpdate,
    CircleResponse,
    FollowCreate,
    FollowEnvelope,
    FollowResponse,
    FollowUpdate,
    LikeEnvelope,
    MessageResponse,
    ReactionCreate,
    ReactionResponse,
    ReactionUpdate,
    RefreetEnvelope,
)
