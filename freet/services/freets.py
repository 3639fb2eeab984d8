"""Freet creation, lookup and deletion with its relationship cascade."""

from __future__ import annotations

import logging

from freet.db.models import Freet
from freet.errors import NotFound
from freet.schemas.entities import FreetResponse
from freet.services.directory import FreetStore, UserDirectory
from freet.services.relationships.service import RelationshipService
from freet.services.relationships.validators import require_user
from freet.services.types import CascadeReport, CascadeStep

logger = logging.getLogger(__name__)


def freet_to_schema(freet: Freet) -> FreetResponse:
    return FreetResponse(
        id=freet.id,
        author=freet.author_id,
        content=freet.content,
        date_created=freet.created_at,
    )


class FreetService:
    """Owns the freet lifecycle.

    Deleting a freet removes everything that references it, in order:

    1. the freet's Like aggregate,
    2. its Refreet aggregate,
    3. its entry in every circle's ``freets`` set,
    4. the freet row itself.

    Every step tolerates having nothing to do, so a retried delete converges.
    """

    def __init__(
        self,
        *,
        freets: FreetStore,
        directory: UserDirectory,
        likes: RelationshipService,
        refreets: RelationshipService,
        circles: RelationshipService,
    ) -> None:
        self._freets = freets
        self._directory = directory
        self._likes = likes
        self._refreets = refreets
        self._circles = circles

    async def create(self, *, author_ref: str, content: str) -> FreetResponse:
        author = await require_user(self._directory, author_ref)
        freet = await self._freets.create(author_id=author.id, content=content)
        logger.info("User %s posted freet %s", author.id, freet.id)
        return freet_to_schema(freet)

    async def get(self, freet_id: str) -> FreetResponse:
        freet = await self._freets.find_one(freet_id)
        if freet is None:
            raise NotFound(f"Freet with ID {freet_id} does not exist.", tag="freetNotFound")
        return freet_to_schema(freet)

    async def find_all(self, *, author_ref: str | None = None) -> list[FreetResponse]:
        author_id = None
        if author_ref is not None:
            author_id = (await require_user(self._directory, author_ref)).id
        freets = await self._freets.find_all(author_id=author_id)
        return [freet_to_schema(freet) for freet in freets]

    async def delete(self, freet_id: str) -> CascadeReport:
        if await self._freets.find_one(freet_id) is None:
            raise NotFound(f"Freet with ID {freet_id} does not exist.", tag="freetNotFound")

        report = CascadeReport(origin=f"freet:{freet_id}")
        for service in (self._likes, self._refreets):
            deleted = await service.store.delete_aggregate(freet_id)
            report.record(
                CascadeStep(
                    kind=service.kind.name,
                    aggregate_key=freet_id,
                    action="deleteAggregate",
                    outcome="deleted" if deleted else "absent",
                )
            )

        removed = await self._circles.store.remove_member_everywhere(freet_id, "freets")
        report.record(
            CascadeStep(
                kind=self._circles.kind.name,
                aggregate_key="*",
                action="removeMemberEverywhere",
                outcome="removed" if removed else "absent",
                member_set="freets",
                member_id=freet_id,
            )
        )

        await self._freets.delete_one(freet_id)
        for service in (self._likes, self._refreets, self._circles):
            await service.invalidate_cache()
        logger.info("Freet cascade finished: %s", report.summary())
        return report


__all__ = ["FreetService", "freet_to_schema"]
