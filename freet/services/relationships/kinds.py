"""Descriptors that parametrise the generic relationship store.

Follow, Like, Refreet and Circle share one implementation; a
:class:`RelationshipKind` tells it which table holds the aggregate, how an
aggregate is addressed, which entity anchors it and which association tables
hold its set fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import Table

from freet.db.models import (
    Base,
    Circle,
    Follow,
    Freet,
    Like,
    Refreet,
    User,
    circle_freets,
    circle_members,
    follow_followers,
    follow_following,
    like_users,
    refreet_users,
)
from freet.services.types import EntityType

SortKey = Literal["name", "anchor_label", "created"]

ENTITY_MODELS: dict[EntityType, type[Base]] = {"user": User, "freet": Freet}


def entity_label_column(entity_type: EntityType) -> Any:
    """Column used as the human-readable label of a snapshot."""

    if entity_type == "user":
        return User.username
    return Freet.content


@dataclass(frozen=True)
class MemberSet:
    """One set-valued field of an aggregate."""

    name: str
    table: Table
    entity_type: EntityType


@dataclass(frozen=True)
class RelationshipKind:
    name: str
    model: type[Base]
    key_attr: str
    anchor_attr: str
    anchor_type: EntityType
    member_sets: tuple[MemberSet, ...]
    sort: SortKey
    unique_per_anchor: bool = True
    named: bool = False
    owner_is_member: bool = False

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @property
    def key_column(self) -> Any:
        return getattr(self.model, self.key_attr)

    @property
    def anchor_column(self) -> Any:
        return getattr(self.model, self.anchor_attr)

    @property
    def default_set(self) -> MemberSet:
        return self.member_sets[0]

    def member_set(self, name: str | None = None) -> MemberSet:
        if name is None:
            return self.default_set
        for member_set in self.member_sets:
            if member_set.name == name:
                return member_set
        raise KeyError(f"{self.name} has no member set named {name!r}")

    @property
    def not_found_tag(self) -> str:
        return f"{self.name}NotFound"

    @property
    def exists_tag(self) -> str:
        return f"{self.name}Exists"


FOLLOW = RelationshipKind(
    name="follow",
    model=Follow,
    key_attr="user_id",
    anchor_attr="user_id",
    anchor_type="user",
    member_sets=(
        MemberSet("following", follow_following, "user"),
        MemberSet("followers", follow_followers, "user"),
    ),
    sort="anchor_label",
)

LIKE = RelationshipKind(
    name="like",
    model=Like,
    key_attr="freet_id",
    anchor_attr="freet_id",
    anchor_type="freet",
    member_sets=(MemberSet("users", like_users, "user"),),
    sort="created",
)

REFREET = RelationshipKind(
    name="refreet",
    model=Refreet,
    key_attr="freet_id",
    anchor_attr="freet_id",
    anchor_type="freet",
    member_sets=(MemberSet("users", refreet_users, "user"),),
    sort="created",
)

CIRCLE = RelationshipKind(
    name="circle",
    model=Circle,
    key_attr="id",
    anchor_attr="owner_id",
    anchor_type="user",
    member_sets=(
        MemberSet("members", circle_members, "user"),
        MemberSet("freets", circle_freets, "freet"),
    ),
    sort="name",
    unique_per_anchor=False,
    named=True,
    owner_is_member=True,
)
