from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

IDENTIFIER_LENGTH = 64
USERNAME_MAX_LENGTH = 64
FREET_MAX_LENGTH = 140


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    """A registered account. Every relationship kind references users."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    username: Mapped[str] = mapped_column(
        String(USERNAME_MAX_LENGTH), nullable=False, unique=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    freets: Mapped[list[Freet]] = relationship("Freet", back_populates="author")


class Freet(Base):
    """A short post written by a user."""

    __tablename__ = "freets"

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    author_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(String(FREET_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    author: Mapped[User] = relationship("User", back_populates="freets")


# Imported late to avoid circular dependency with the relationships module.
from .relationships import (  # noqa: E402
    Circle,
    Follow,
    Like,
    Refreet,
    circle_freets,
    circle_members,
    follow_followers,
    follow_following,
    like_users,
    refreet_users,
)

__all__ = [
    "Base",
    "Circle",
    "FREET_MAX_LENGTH",
    "Follow",
    "Freet",
    "IDENTIFIER_LENGTH",
    "Like",
    "Refreet",
    "USERNAME_MAX_LENGTH",
    "User",
    "circle_freets",
    "circle_members",
    "follow_followers",
    "follow_following",
    "like_users",
    "new_id",
    "refreet_users",
    "utcnow",
]
