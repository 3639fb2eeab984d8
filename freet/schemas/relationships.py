"""Pydantic schemas for the follow, like, refreet and circle endpoints.

Request bodies use camelCase keys on the wire. Response models expose the
aggregate id as ``_id`` and every reference as its canonical string id.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

IDENTIFIER_PATTERN = r"^[A-Za-z0-9_.\-]+$"
IDENTIFIER_MAX_LENGTH = 64

Identifier = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=1,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
    ),
]
"""An entity id or a username; both share one alphabet."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# -- requests ---------------------------------------------------------------


class FollowCreate(_CamelModel):
    user_id: Identifier = Field(..., alias="userId")


class FollowUpdate(_CamelModel):
    """Follow or unfollow ``follow_id`` on behalf of ``user_id``."""

    user_id: Identifier = Field(..., alias="userId")
    follow_id: Identifier = Field(..., alias="followId")
    add_follower: bool | None = Field(
        None,
        alias="addFollower",
        description="True follows; false or absent unfollows.",
    )


class ReactionCreate(_CamelModel):
    freet_id: Identifier = Field(..., alias="freetId")


class ReactionUpdate(_CamelModel):
    freet_id: Identifier = Field(..., alias="freetId")
    user_id: Identifier = Field(..., alias="userId")


class CircleCreate(_CamelModel):
    name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)
    ]
    owner: Identifier = Field(..., description="Owner user id or username")


class CircleMemberUpdate(_CamelModel):
    id: Identifier = Field(..., description="Circle id")
    member: Identifier = Field(..., description="User id or username")


class CircleFreetUpdate(_CamelModel):
    id: Identifier = Field(..., description="Circle id")
    freet_id: Identifier = Field(..., alias="freetId")


# -- formatted aggregates ---------------------------------------------------


class FollowResponse(_CamelModel):
    id: str = Field(..., alias="_id")
    user: str
    following: list[str] = Field(default_factory=list)
    followers: list[str] = Field(default_factory=list)


class ReactionResponse(_CamelModel):
    """Shared shape of Like and Refreet aggregates."""

    id: str = Field(..., alias="_id")
    freet: str
    users: list[str] = Field(default_factory=list)


class CircleResponse(_CamelModel):
    id: str = Field(..., alias="_id")
    name: str
    owner: str
    members: list[str] = Field(default_factory=list)
    freets: list[str] = Field(default_factory=list)


# -- envelopes --------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str


class FollowEnvelope(MessageResponse):
    follow: FollowResponse


class LikeEnvelope(MessageResponse):
    like: ReactionResponse


class RefreetEnvelope(MessageResponse):
    refreet: ReactionResponse


class CircleEnvelope(MessageResponse):
    circle: CircleResponse


__all__ = [
    "CircleCreate",
    "CircleEnvelope",
    "CircleFreetUpdate",
    "CircleMemberUpdate",
    "CircleResponse",
    "FollowCreate",
    "FollowEnvelope",
    "FollowResponse",
    "FollowUpdate",
    "IDENTIFIER_MAX_LENGTH",
    "IDENTIFIER_PATTERN",
    "Identifier",
    "LikeEnvelope",
    "MessageResponse",
    "ReactionCreate",
    "ReactionResponse",
    "ReactionUpdate",
    "RefreetEnvelope",
]
