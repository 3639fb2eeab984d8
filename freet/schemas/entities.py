"""Schemas for the user and freet collaborator endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from freet.schemas.relationships import Identifier, MessageResponse


class UserCreate(BaseModel):
    username: Identifier = Field(..., description="Letters, digits, '_', '.', '-'")


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    username: str
    date_joined: datetime = Field(..., alias="dateJoined")


class FreetCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    author_id: Identifier = Field(..., alias="authorId")
    content: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=140)
    ]


class FreetResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    author: str = Field(..., description="Author user id")
    content: str
    date_created: datetime = Field(..., alias="dateCreated")


class UserEnvelope(MessageResponse):
    user: UserResponse


class FreetEnvelope(MessageResponse):
    freet: FreetResponse


__all__ = [
    "FreetCreate",
    "FreetEnvelope",
    "FreetResponse",
    "UserCreate",
    "UserEnvelope",
    "UserResponse",
]
