"""initial schema: users, freets and relationship aggregates

Revision ID: 5b1d7c3e9a20
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "5b1d7c3e9a20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

_MEMBERSHIP_TABLES = (
    ("follow_following", "follows", "users"),
    ("follow_followers", "follows", "users"),
    ("like_users", "likes", "users"),
    ("refreet_users", "refreets", "users"),
    ("circle_members", "circles", "users"),
    ("circle_freets", "circles", "freets"),
)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def _create_anchor_table(name: str, anchor_column: str, anchor_table: str) -> None:
    """Follows, likes and refreets share one layout: one row per anchor."""

    op.create_table(
        name,
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            anchor_column,
            sa.String(length=64),
            sa.ForeignKey(f"{anchor_table}.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
    )
    op.create_index(
        f"ix_{name}_{anchor_column}", name, [anchor_column], unique=True
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("username", sa.String(length=64), nullable=False),
        _created_at(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "freets",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "author_id",
            sa.String(length=64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.String(length=140), nullable=False),
        _created_at(),
    )
    op.create_index("ix_freets_author_id", "freets", ["author_id"])

    _create_anchor_table("follows", "user_id", "users")
    _create_anchor_table("likes", "freet_id", "freets")
    _create_anchor_table("refreets", "freet_id", "freets")

    op.create_table(
        "circles",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "owner_id",
            sa.String(length=64),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
        sa.UniqueConstraint("owner_id", "name", name="uq_circles_owner_name"),
    )
    op.create_index("ix_circles_name", "circles", ["name"])
    op.create_index("ix_circles_owner_id", "circles", ["owner_id"])

    for name, aggregate_table, member_table in _MEMBERSHIP_TABLES:
        op.create_table(
            name,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "aggregate_id",
                sa.String(length=64),
                sa.ForeignKey(f"{aggregate_table}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "member_id",
                sa.String(length=64),
                sa.ForeignKey(f"{member_table}.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "added_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
            sa.UniqueConstraint(
                "aggregate_id", "member_id", name=f"uq_{name}_member"
            ),
        )
        op.create_index(f"ix_{name}_aggregate_id", name, ["aggregate_id"])
        op.create_index(f"ix_{name}_member_id", name, ["member_id"])


def downgrade() -> None:
    for name, _, _ in reversed(_MEMBERSHIP_TABLES):
        op.drop_index(f"ix_{name}_member_id", table_name=name)
        op.drop_index(f"ix_{name}_aggregate_id", table_name=name)
        op.drop_table(name)

    op.drop_index("ix_circles_owner_id", table_name="circles")
    op.drop_index("ix_circles_name", table_name="circles")
    op.drop_table("circles")

    for name, anchor_column in (
        ("refreets", "freet_id"),
        ("likes", "freet_id"),
        ("follows", "user_id"),
    ):
        op.drop_index(f"ix_{name}_{anchor_column}", table_name=name)
        op.drop_table(name)

    op.drop_index("ix_freets_author_id", table_name="freets")
    op.drop_table("freets")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
