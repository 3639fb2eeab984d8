"""Follow graph endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Query, status

from freet.schemas.relationships import (
    IDENTIFIER_MAX_LENGTH,
    IDENTIFIER_PATTERN,
    FollowCreate,
    FollowEnvelope,
    FollowResponse,
    FollowUpdate,
    MessageResponse,
)
from freet.services.dependencies import get_follow_service
from freet.services.relationships import FollowService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=FollowResponse | list[FollowResponse])
async def read_follows(
    user: str | None = Query(
        None,
        min_length=1,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
        description="User id or username; returns that user's follow record",
    ),
    service: FollowService = Depends(get_follow_service),
):
    """All follow records sorted by username, or one user's record."""

    if user is not None:
        return await service.get(user)
    return await service.list_all()


@router.post("", response_model=FollowEnvelope, status_code=status.HTTP_201_CREATED)
async def create_follow(
    payload: FollowCreate,
    service: FollowService = Depends(get_follow_service),
) -> FollowEnvelope:
    follow = await service.create(payload.user_id)
    return FollowEnvelope(message="Your follow was created successfully.", follow=follow)


@router.put("", response_model=FollowEnvelope)
async def update_follow(
    payload: FollowUpdate,
    service: FollowService = Depends(get_follow_service),
) -> FollowEnvelope:
    """Follow ``followId`` when ``addFollower`` is true, otherwise unfollow."""

    follow = await service.update(
        payload.user_id, payload.follow_id, follow=payload.add_follower is True
    )
    return FollowEnvelope(message="Your follow was updated successfully.", follow=follow)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_follow(
    user_id: str = Path(..., max_length=IDENTIFIER_MAX_LENGTH, pattern=IDENTIFIER_PATTERN),
    service: FollowService = Depends(get_follow_service),
) -> MessageResponse:
    """Sever every edge of the user, then delete their follow record."""

    report = await service.delete_with_cascade(user_id)
    logger.debug("Follow delete for %s ran %d cascade step(s)", user_id, len(report.steps))
    return MessageResponse(message="Your follow was deleted successfully.")
