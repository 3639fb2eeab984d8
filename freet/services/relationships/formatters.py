"""Project populated aggregates onto their wire models.

Formatters are pure: no I/O, no session access. Every reference is rendered as
its canonical string id and storage metadata (timestamps, association row ids)
never reaches the response.
"""

from __future__ import annotations

from typing import Callable, Union

from freet.schemas.relationships import CircleResponse, FollowResponse, ReactionResponse
from freet.services.types import PopulatedAggregate

FormattedAggregate = Union[FollowResponse, ReactionResponse, CircleResponse]


def format_follow(aggregate: PopulatedAggregate) -> FollowResponse:
    return FollowResponse(
        id=aggregate.id,
        user=aggregate.anchor.id,
        following=aggregate.member_ids("following"),
        followers=aggregate.member_ids("followers"),
    )


def format_reaction(aggregate: PopulatedAggregate) -> ReactionResponse:
    """Likes and refreets share one shape."""

    return ReactionResponse(
        id=aggregate.id,
        freet=aggregate.anchor.id,
        users=aggregate.member_ids("users"),
    )


def format_circle(aggregate: PopulatedAggregate) -> CircleResponse:
    return CircleResponse(
        id=aggregate.id,
        name=aggregate.name or "",
        owner=aggregate.anchor.id,
        members=aggregate.member_ids("members"),
        freets=aggregate.member_ids("freets"),
    )


FORMATTERS: dict[str, Callable[[PopulatedAggregate], FormattedAggregate]] = {
    "follow": format_follow,
    "like": format_reaction,
    "refreet": format_reaction,
    "circle": format_circle,
}

RESPONSE_MODELS: dict[str, type[FormattedAggregate]] = {
    "follow": FollowResponse,
    "like": ReactionResponse,
    "refreet": ReactionResponse,
    "circle": CircleResponse,
}


def format_aggregate(aggregate: PopulatedAggregate) -> FormattedAggregate:
    return FORMATTERS[aggregate.kind](aggregate)


def format_many(aggregates: list[PopulatedAggregate]) -> list[FormattedAggregate]:
    return [format_aggregate(aggregate) for aggregate in aggregates]


__all__ = [
    "FORMATTERS",
    "FormattedAggregate",
    "RESPONSE_MODELS",
    "format_aggregate",
    "format_circle",
    "format_follow",
    "format_many",
    "format_reaction",
]
