"""Circle endpoints: named sharing groups of users and freets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, status

from freet.schemas.relationships import (
    IDENTIFIER_MAX_LENGTH,
    IDENTIFIER_PATTERN,
    CircleCreate,
    CircleEnvelope,
    CircleFreetUpdate,
    CircleMemberUpdate,
    CircleResponse,
    MessageResponse,
)
from freet.services.dependencies import get_circle_service
from freet.services.relationships import CircleService

router = APIRouter()

_UPDATED = "Your circle was updated successfully."


@router.get("", response_model=list[CircleResponse])
async def list_circles(
    owner: str | None = Query(
        None,
        min_length=1,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
        description="Owner user id or username",
    ),
    member: str | None = Query(
        None,
        min_length=1,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
        description="Member user id or username",
    ),
    service: CircleService = Depends(get_circle_service),
) -> list[CircleResponse]:
    """All circles sorted by name, filtered by ``owner`` or ``member`` when given."""

    if owner is not None:
        return await service.list_owned(owner)
    if member is not None:
        return await service.list_containing(member, "members")
    return await service.list_all()


@router.post("", response_model=CircleEnvelope, status_code=status.HTTP_201_CREATED)
async def create_circle(
    payload: CircleCreate,
    service: CircleService = Depends(get_circle_service),
) -> CircleEnvelope:
    circle = await service.create(payload.owner, name=payload.name)
    return CircleEnvelope(message="Your circle was created successfully.", circle=circle)


@router.put("/addMember", response_model=CircleEnvelope)
async def add_member(
    payload: CircleMemberUpdate,
    service: CircleService = Depends(get_circle_service),
) -> CircleEnvelope:
    circle = await service.add_member(payload.id, payload.member, "members", strict=True)
    return CircleEnvelope(message=_UPDATED, circle=circle)


@router.put("/removeMember", response_model=CircleEnvelope)
async def remove_member(
    payload: CircleMemberUpdate,
    service: CircleService = Depends(get_circle_service),
) -> CircleEnvelope:
    """Remove a member; the owner cannot be removed."""

    circle = await service.remove_member(
        payload.id, payload.member, "members", strict=True
    )
    return CircleEnvelope(message=_UPDATED, circle=circle)


@router.put("/addFreet", response_model=CircleEnvelope)
async def add_freet(
    payload: CircleFreetUpdate,
    service: CircleService = Depends(get_circle_service),
) -> CircleEnvelope:
    circle = await service.add_member(payload.id, payload.freet_id, "freets", strict=True)
    return CircleEnvelope(message=_UPDATED, circle=circle)


@router.put("/removeFreet", response_model=CircleEnvelope)
async def remove_freet(
    payload: CircleFreetUpdate,
    service: CircleService = Depends(get_circle_service),
) -> CircleEnvelope:
    circle = await service.remove_member(
        payload.id, payload.freet_id, "freets", strict=True
    )
    return CircleEnvelope(message=_UPDATED, circle=circle)


@router.delete("/{circle_id}", response_model=MessageResponse)
async def delete_circle(
    circle_id: str = Path(..., max_length=IDENTIFIER_MAX_LENGTH, pattern=IDENTIFIER_PATTERN),
    service: CircleService = Depends(get_circle_service),
) -> MessageResponse:
    await service.delete(circle_id)
    return MessageResponse(message="Your circle has been deleted successfully.")
