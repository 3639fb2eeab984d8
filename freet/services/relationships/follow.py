"""Bidirectional follow edges on top of the generic relationship store."""

from __future__ import annotations

import logging

from freet.errors import ValidationFailure
from freet.services.relationships.kinds import FOLLOW
from freet.services.relationships.store import RelationshipStore
from freet.services.types import CascadeOutcome, CascadeReport, CascadeStep, PopulatedAggregate

logger = logging.getLogger(__name__)


def _outcome(removed: bool | None) -> CascadeOutcome:
    if removed is None:
        return "skipped"
    return "removed" if removed else "absent"


class FollowGraph:
    """Keeps ``B in A.following`` and ``A in B.followers`` in lockstep.

    Both halves of an edge are written through the caller's session, so they
    commit or roll back together with the request transaction.
    """

    def __init__(self, store: RelationshipStore) -> None:
        if store.kind is not FOLLOW:
            raise ValueError("FollowGraph requires a follow relationship store")
        self._store = store

    @property
    def store(self) -> RelationshipStore:
        return self._store

    async def add_following(self, user_id: str, target_id: str) -> PopulatedAggregate:
        """Make ``user_id`` follow ``target_id`` and return the follower's aggregate."""

        if user_id == target_id:
            raise ValidationFailure("Users cannot follow themselves.", tag="selfFollow")
        await self._store.add_member(target_id, user_id, "followers")
        return await self._store.add_member(user_id, target_id, "following")

    async def remove_following(self, user_id: str, target_id: str) -> PopulatedAggregate:
        await self._store.remove_member(target_id, user_id, "followers")
        return await self._store.remove_member(user_id, target_id, "following")

    async def is_following(self, user_id: str, target_id: str) -> bool:
        return await self._store.is_member(user_id, target_id, "following")

    async def delete(self, user_id: str) -> CascadeReport:
        """Sever every edge touching ``user_id`` and delete its aggregate.

        Each step is idempotent; running the cascade again after a partial
        failure (or after it completed) converges to the same end state.
        """

        report = CascadeReport(origin=f"follow:{user_id}")
        aggregate = await self._store.find_by_key(user_id)
        if aggregate is None:
            report.record(
                CascadeStep(
                    kind=FOLLOW.name,
                    aggregate_key=user_id,
                    action="deleteAggregate",
                    outcome="absent",
                )
            )
            logger.info("Follow cascade finished: %s", report.summary())
            return report

        for target_id in aggregate.member_ids("following"):
            removed = await self._store.discard_member(target_id, user_id, "followers")
            report.record(
                CascadeStep(
                    kind=FOLLOW.name,
                    aggregate_key=target_id,
                    action="removeMember",
                    outcome=_outcome(removed),
                    member_set="followers",
                    member_id=user_id,
                )
            )

        for follower_id in aggregate.member_ids("followers"):
            removed = await self._store.discard_member(follower_id, user_id, "following")
            report.record(
                CascadeStep(
                    kind=FOLLOW.name,
                    aggregate_key=follower_id,
                    action="removeMember",
                    outcome=_outcome(removed),
                    member_set="following",
                    member_id=user_id,
                )
            )

        deleted = await self._store.delete_aggregate(user_id)
        report.record(
            CascadeStep(
                kind=FOLLOW.name,
                aggregate_key=user_id,
                action="deleteAggregate",
                outcome="deleted" if deleted else "absent",
            )
        )
        logger.info("Follow cascade finished: %s", report.summary())
        return report


__all__ = ["FollowGraph"]
