"""Routers for likes and refreets.

Both kinds anchor on a freet and hold one set of users, so one factory builds
both routers; only the envelope key and the messages differ.
"""

from __future__ import annotations

from typing import Callable

from fastapi import APIRouter, Depends, Path, Query, status

from freet.schemas.relationships import (
    IDENTIFIER_MAX_LENGTH,
    IDENTIFIER_PATTERN,
    LikeEnvelope,
    MessageResponse,
    ReactionCreate,
    ReactionResponse,
    ReactionUpdate,
    RefreetEnvelope,
)
from freet.services.dependencies import get_like_service, get_refreet_service
from freet.services.relationships import LIKE, REFREET, RelationshipKind, RelationshipService

_ENVELOPES = {LIKE.name: LikeEnvelope, REFREET.name: RefreetEnvelope}


def build_router(
    kind: RelationshipKind,
    get_service: Callable[..., RelationshipService],
) -> APIRouter:
    router = APIRouter()
    envelope = _ENVELOPES[kind.name]
    updated = f"Your {kind.name} was updated successfully."

    @router.get("", response_model=ReactionResponse | list[ReactionResponse])
    async def read_reactions(
        freet_id: str | None = Query(
            None,
            alias="freetId",
            min_length=1,
            max_length=IDENTIFIER_MAX_LENGTH,
            pattern=IDENTIFIER_PATTERN,
        ),
        user_id: str | None = Query(
            None,
            alias="userId",
            min_length=1,
            max_length=IDENTIFIER_MAX_LENGTH,
            pattern=IDENTIFIER_PATTERN,
            description="User id or username",
        ),
        service: RelationshipService = Depends(get_service),
    ):
        """All aggregates; ``freetId`` selects one, ``userId`` those containing a user."""

        if freet_id is not None:
            return await service.get(freet_id)
        if user_id is not None:
            return await service.list_containing(user_id)
        return await service.list_all()

    @router.post("", response_model=envelope, status_code=status.HTTP_201_CREATED)
    async def create_reaction(
        payload: ReactionCreate,
        service: RelationshipService = Depends(get_service),
    ):
        aggregate = await service.create(payload.freet_id)
        return {
            "message": f"Your {kind.name} was created successfully.",
            kind.name: aggregate,
        }

    @router.put("/add", response_model=envelope)
    async def add_user(
        payload: ReactionUpdate,
        service: RelationshipService = Depends(get_service),
    ):
        aggregate = await service.add_member(payload.freet_id, payload.user_id)
        return {"message": updated, kind.name: aggregate}

    @router.put("/remove", response_model=envelope)
    async def remove_user(
        payload: ReactionUpdate,
        service: RelationshipService = Depends(get_service),
    ):
        aggregate = await service.remove_member(payload.freet_id, payload.user_id)
        return {"message": updated, kind.name: aggregate}

    @router.delete("/{freet_id}", response_model=MessageResponse)
    async def delete_reaction(
        freet_id: str = Path(
            ..., max_length=IDENTIFIER_MAX_LENGTH, pattern=IDENTIFIER_PATTERN
        ),
        service: RelationshipService = Depends(get_service),
    ) -> MessageResponse:
        await service.delete(freet_id)
        return MessageResponse(message=f"Your {kind.name} was deleted successfully.")

    return router


likes_router = build_router(LIKE, get_like_service)
refreets_router = build_router(REFREET, get_refreet_service)
