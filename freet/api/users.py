"""User registration and lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from freet.schemas.entities import UserCreate, UserEnvelope, UserResponse
from freet.schemas.relationships import IDENTIFIER_MAX_LENGTH, IDENTIFIER_PATTERN
from freet.services.dependencies import get_user_service
from freet.services.users import UserService

router = APIRouter()


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """Create an account and its (empty) follow record."""

    user = await service.register(payload.username)
    return UserEnvelope(message="Your account was created successfully.", user=user)


@router.get("/{ref}", response_model=UserResponse)
async def read_user(
    ref: str = Path(
        ...,
        max_length=IDENTIFIER_MAX_LENGTH,
        pattern=IDENTIFIER_PATTERN,
        description="User id or username",
    ),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    return await service.get(ref)
