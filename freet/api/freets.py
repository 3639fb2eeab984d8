"""Freet endpoints. Deletion cascades into likes, refreets and circles."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, status

from freet.schemas.entities import FreetCreate, FreetEnvelope, FreetResponse
from freet.schemas.relationships import (
    IDENTIFIER_MAX_LENGTH,
    IDENTIFIER_PATTERN,
    MessageResponse,
)
from freet.services.dependencies import get_freet_service
from freet.services.freets import FreetService

router = APIRouter()


@router.post("", response_model=FreetEnvelope, status_code=status.HTTP_201_CREATED)
async def create_freet(
    payload: FreetCreate,
    service: FreetService = Depends(get_freet_service),
) -> FreetEnvelope:
    freet = await service.create(author_ref=payload.author_id, content=payload.content)
    return FreetEnvelope(message="Your freet was created successfully.", freet=freet)


@router.get("", response_model=list[FreetResponse])
async def list_freets(
    author: str | None = Query(
        None,
        min_length=1,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
        description="Author user id or username",
    ),
    service: FreetService = Depends(get_freet_service),
) -> list[FreetResponse]:
    """Freets newest first."""

    return await service.find_all(author_ref=author)


@router.get("/{freet_id}", response_model=FreetResponse)
async def read_freet(
    freet_id: str = Path(..., max_length=IDENTIFIER_MAX_LENGTH, pattern=IDENTIFIER_PATTERN),
    service: FreetService = Depends(get_freet_service),
) -> FreetResponse:
    return await service.get(freet_id)


@router.delete("/{freet_id}", response_model=MessageResponse)
async def delete_freet(
    freet_id: str = Path(..., max_length=IDENTIFIER_MAX_LENGTH, pattern=IDENTIFIER_PATTERN),
    service: FreetService = Depends(get_freet_service),
) -> MessageResponse:
    await service.delete(freet_id)
    return MessageResponse(message="Your freet was deleted successfully.")
