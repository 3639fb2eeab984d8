"""Precondition checks run by the service layer before a mutation.

Each check performs exactly one store or directory lookup and raises a typed
:class:`~freet.errors.FreetError` on failure. :func:`run_chain` awaits checks
lazily and in order, so the first failure stops the chain before any further
lookup is issued.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from freet.errors import AlreadyMember, DuplicateAggregate, NotFound, NotMember
from freet.services.directory import (
    FreetStore,
    UserDirectory,
    freet_snapshot,
    user_snapshot,
)
from freet.services.relationships.store import RelationshipStore
from freet.services.types import EntitySnapshot

Check = Callable[[], Awaitable[Any]]


async def require_member(
    store: RelationshipStore,
    key: str,
    candidate_id: str,
    member_set: str | None = None,
) -> None:
    if not await store.is_member(key, candidate_id, member_set):
        kind = store.kind
        set_name = kind.member_set(member_set).name
        raise NotMember(
            f"{candidate_id} is not in {set_name} of {kind.name} {key}.",
        )


async def require_not_member(
    store: RelationshipStore,
    key: str,
    candidate_id: str,
    member_set: str | None = None,
) -> None:
    if await store.is_member(key, candidate_id, member_set):
        kind = store.kind
        set_name = kind.member_set(member_set).name
        raise AlreadyMember(
            f"{candidate_id} is already in {set_name} of {kind.name} {key}.",
        )


async def require_aggregate_exists(store: RelationshipStore, key: str) -> None:
    if not await store.exists(key):
        kind = store.kind
        raise NotFound(
            f"{kind.title} with ID {key} does not exist.",
            tag=kind.not_found_tag,
        )


async def require_aggregate_absent(store: RelationshipStore, key: str) -> None:
    if await store.exists(key):
        kind = store.kind
        raise DuplicateAggregate(
            f"{kind.title} with ID {key} already exists.",
            tag=kind.exists_tag,
        )


async def require_user(directory: UserDirectory, ref: str) -> EntitySnapshot:
    """Resolve ``ref`` (id or username) or raise ``userNotFound``."""

    user = await directory.resolve(ref)
    if user is None:
        raise NotFound(f"User {ref} does not exist.", tag="userNotFound")
    return user_snapshot(user)


async def require_freet(freets: FreetStore, ref: str) -> EntitySnapshot:
    freet = await freets.find_one(ref)
    if freet is None:
        raise NotFound(f"Freet with ID {ref} does not exist.", tag="freetNotFound")
    return freet_snapshot(freet)


async def run_chain(checks: Iterable[Check]) -> list[Any]:
    """Await ``checks`` one at a time and collect their results."""

    results: list[Any] = []
    for check in checks:
        results.append(await check())
    return results


__all__ = [
    "Check",
    "require_aggregate_absent",
    "require_aggregate_exists",
    "require_freet",
    "require_member",
    "require_not_member",
    "require_user",
    "run_chain",
]
