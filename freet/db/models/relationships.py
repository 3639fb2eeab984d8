"""SQLAlchemy models for the four relationship aggregates.

Every aggregate row is anchored on one entity (a user or a freet) and owns one
or more set-valued fields. Set fields live in association tables rather than
array columns: a ``UniqueConstraint(aggregate_id, member_id)`` keeps each set
duplicate-free and lets the store use ``INSERT ... ON CONFLICT DO NOTHING`` as
an atomic set-add. The surrogate ``id`` column preserves insertion order.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import IDENTIFIER_LENGTH, Base, Freet, User, new_id, utcnow


def _membership_table(name: str, aggregate_table: str, member_table: str) -> Table:
    """Build an association table holding one set field of an aggregate."""

    return Table(
        name,
        Base.metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column(
            "aggregate_id",
            ForeignKey(f"{aggregate_table}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        Column(
            "member_id",
            ForeignKey(f"{member_table}.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        Column("added_at", DateTime(timezone=True), nullable=False, default=utcnow),
        UniqueConstraint("aggregate_id", "member_id", name=f"uq_{name}_member"),
    )


class Follow(Base):
    """Follow graph node for a single user (``following`` and ``followers``)."""

    __tablename__ = "follows"

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship("User")


class Like(Base):
    """Users who liked one freet."""

    __tablename__ = "likes"

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    freet_id: Mapped[str] = mapped_column(
        ForeignKey("freets.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    freet: Mapped[Freet] = relationship("Freet")


class Refreet(Base):
    """Users who re-shared one freet."""

    __tablename__ = "refreets"

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    freet_id: Mapped[str] = mapped_column(
        ForeignKey("freets.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    freet: Mapped[Freet] = relationship("Freet")


class Circle(Base):
    """A named sharing group owned by a user."""

    __tablename__ = "circles"
    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_circles_owner_name"),
    )

    id: Mapped[str] = mapped_column(
        String(IDENTIFIER_LENGTH), primary_key=True, default=new_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    owner: Mapped[User] = relationship("User")


follow_following = _membership_table("follow_following", "follows", "users")
follow_followers = _membership_table("follow_followers", "follows", "users")
like_users = _membership_table("like_users", "likes", "users")
refreet_users = _membership_table("refreet_users", "refreets", "users")
circle_members = _membership_table("circle_members", "circles", "users")
circle_freets = _membership_table("circle_freets", "circles", "freets")
