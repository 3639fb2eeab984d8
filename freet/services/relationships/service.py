"""Workflows behind the relationship endpoints.

:class:`RelationshipService` coordinates three collaborators:

* :class:`RelationshipStore` for persistence and set updates,
* the validators for ordered, short-circuiting preconditions,
* :class:`RelationshipCache` for read results.

Reads go through the cache; every mutation goes to the store, returns the
re-fetched aggregate and then drops the kind's cache namespace. Likes and
refreets use the base class as-is. Follows and circles add their kind rules in
the subclasses below.
"""

from __future__ import annotations

import logging
from functools import partial

from sqlalchemy.ext.asyncio import AsyncSession

from freet.cache import CacheClient
from freet.errors import Forbidden, NotFound
from freet.services.directory import FreetStore, UserDirectory
from freet.services.relationships.cache import RelationshipCache
from freet.services.relationships.follow import FollowGraph
from freet.services.relationships.formatters import (
    FormattedAggregate,
    format_aggregate,
    format_many,
)
from freet.services.relationships.kinds import FOLLOW, RelationshipKind
from freet.services.relationships.store import RelationshipStore
from freet.services.relationships.validators import (
    require_aggregate_exists,
    require_freet,
    require_member,
    require_not_member,
    require_user,
    run_chain,
)
from freet.services.types import CascadeReport, EntitySnapshot

logger = logging.getLogger(__name__)


def build_relationship_store(
    session: AsyncSession,
    kind: RelationshipKind,
    *,
    directory: UserDirectory,
    freets: FreetStore,
) -> RelationshipStore:
    """Wire a store with the anchor resolver its kind needs.

    Aggregates keyed by their own id (circles) take the reference verbatim;
    follows accept a user id or username; likes and refreets a freet id.
    """

    if kind.key_attr == "id":
        resolver = None
    elif kind.anchor_type == "user":
        resolver = directory.resolve_id
    else:
        resolver = freets.resolve_id
    return RelationshipStore(session, kind, resolver=resolver)


class RelationshipService:
    def __init__(
        self,
        *,
        store: RelationshipStore,
        cache: RelationshipCache,
        directory: UserDirectory,
        freets: FreetStore,
    ) -> None:
        self._store = store
        self._cache = cache
        self._directory = directory
        self._freets = freets

    @property
    def kind(self) -> RelationshipKind:
        return self._store.kind

    @property
    def store(self) -> RelationshipStore:
        return self._store

    # -- reads ------------------------------------------------------------

    async def list_all(self) -> list[FormattedAggregate]:
        cached = await self._cache.read_all()
        if cached is not None:
            return cached
        payload = format_many(await self._store.find_all())
        await self._cache.write_all(payload)
        return payload

    async def get(self, ref: str) -> FormattedAggregate:
        """Return the aggregate anchored on ``ref`` or raise ``NotFound``."""

        key = await self._store.resolve_key(ref)
        if key is not None:
            cached = await self._cache.read_anchor(key)
            if cached is not None:
                return cached
            aggregate = await self._store.find_by_key(key)
            if aggregate is not None:
                payload = format_aggregate(aggregate)
                await self._cache.write_anchor(key, payload)
                return payload
        raise NotFound(
            f"{self.kind.title} for {ref} does not exist.",
            tag=self.kind.not_found_tag,
        )

    async def list_containing(
        self, member_ref: str, member_set: str | None = None
    ) -> list[FormattedAggregate]:
        """Aggregates whose ``member_set`` holds the entity ``member_ref`` names."""

        member = await self._require_entity(member_ref, member_set)
        cache_key = member.id if member_set is None else f"{member.id}:{member_set}"
        cached = await self._cache.read_containing(cache_key)
        if cached is not None:
            return cached
        payload = format_many(
            await self._store.find_all_by_member(member.id, member_set)
        )
        await self._cache.write_containing(cache_key, payload)
        return payload

    async def list_owned(self, owner_ref: str) -> list[FormattedAggregate]:
        """Aggregates anchored on the user ``owner_ref`` names."""

        owner = await require_user(self._directory, owner_ref)
        cached = await self._cache.read_owned(owner.id)
        if cached is not None:
            return cached
        payload = format_many(await self._store.find_all_by_anchor(owner.id))
        await self._cache.write_owned(owner.id, payload)
        return payload

    # -- mutations --------------------------------------------------------

    async def create(self, anchor_ref: str, *, name: str | None = None) -> FormattedAggregate:
        anchor = await self._require_anchor(anchor_ref)
        aggregate = await self._store.create(anchor.id, name=name)
        await self._cache.invalidate()
        logger.info("Created %s %s anchored on %s", self.kind.name, aggregate.id, anchor.id)
        return format_aggregate(aggregate)

    async def add_member(
        self,
        key: str,
        candidate_ref: str,
        member_set: str | None = None,
        *,
        strict: bool = False,
    ) -> FormattedAggregate:
        """Add the entity ``candidate_ref`` names to ``member_set``.

        With ``strict`` an existing member is rejected with ``AlreadyMember``;
        otherwise the update is idempotent.
        """

        _, candidate = await run_chain(
            [
                partial(require_aggregate_exists, self._store, key),
                partial(self._require_entity, candidate_ref, member_set),
            ]
        )
        if strict:
            await require_not_member(self._store, key, candidate.id, member_set)
        aggregate = await self._store.add_member(key, candidate.id, member_set)
        await self._cache.invalidate()
        return format_aggregate(aggregate)

    async def remove_member(
        self,
        key: str,
        candidate_ref: str,
        member_set: str | None = None,
        *,
        strict: bool = False,
    ) -> FormattedAggregate:
        """Remove ``candidate_ref``; with ``strict`` a non-member is rejected."""

        _, candidate = await run_chain(
            [
                partial(require_aggregate_exists, self._store, key),
                partial(self._require_entity, candidate_ref, member_set),
            ]
        )
        if strict:
            await require_member(self._store, key, candidate.id, member_set)
        await self._check_removal(key, candidate.id, member_set)
        aggregate = await self._store.remove_member(key, candidate.id, member_set)
        await self._cache.invalidate()
        return format_aggregate(aggregate)

    async def delete(self, key: str) -> None:
        if not await self._store.delete_aggregate(key):
            raise NotFound(
                f"{self.kind.title} with ID {key} does not exist.",
                tag=self.kind.not_found_tag,
            )
        await self._cache.invalidate()
        logger.info("Deleted %s %s", self.kind.name, key)

    async def invalidate_cache(self) -> None:
        await self._cache.invalidate()

    # -- helpers ----------------------------------------------------------

    async def _check_removal(
        self, key: str, candidate_id: str, member_set: str | None
    ) -> None:
        """Hook for kind-specific removal rules."""

    async def _require_anchor(self, ref: str) -> EntitySnapshot:
        if self.kind.anchor_type == "user":
            return await require_user(self._directory, ref)
        return await require_freet(self._freets, ref)

    async def _require_entity(
        self, ref: str, member_set: str | None = None
    ) -> EntitySnapshot:
        if self.kind.member_set(member_set).entity_type == "user":
            return await require_user(self._directory, ref)
        return await require_freet(self._freets, ref)


class FollowService(RelationshipService):
    """Follow aggregates, updated two edges at a time through :class:`FollowGraph`."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        if self.kind is not FOLLOW:
            raise ValueError("FollowService requires the follow relationship store")
        self._graph = FollowGraph(self._store)

    async def update(
        self, user_ref: str, target_ref: str, *, follow: bool
    ) -> FormattedAggregate:
        """Follow (``follow=True``) or unfollow and return the acting user's aggregate."""

        user, target = await run_chain(
            [
                partial(require_user, self._directory, user_ref),
                partial(require_user, self._directory, target_ref),
            ]
        )
        await run_chain(
            [
                partial(require_aggregate_exists, self._store, user.id),
                partial(require_aggregate_exists, self._store, target.id),
            ]
        )
        if follow:
            aggregate = await self._graph.add_following(user.id, target.id)
        else:
            aggregate = await self._graph.remove_following(user.id, target.id)
        await self._cache.invalidate()
        return format_aggregate(aggregate)

    async def delete_with_cascade(self, user_ref: str) -> CascadeReport:
        key = await self._store.resolve_key(user_ref)
        if key is None:
            raise NotFound(f"User {user_ref} does not exist.", tag="userNotFound")
        await require_aggregate_exists(self._store, key)
        report = await self._graph.delete(key)
        await self._cache.invalidate()
        return report


class CircleService(RelationshipService):
    """Circles: named per owner, owner is a permanent member."""

    async def _check_removal(
        self, key: str, candidate_id: str, member_set: str | None
    ) -> None:
        if self.kind.member_set(member_set).name != "members":
            return
        if await self._store.anchor_of(key) == candidate_id:
            raise Forbidden(
                "The owner of a circle cannot be removed from it.",
                tag="ownerNotRemovable",
            )


def build_relationship_service(
    session: AsyncSession,
    cache_client: CacheClient,
    kind: RelationshipKind,
) -> RelationshipService:
    """Construct the service class matching ``kind`` with fresh collaborators."""

    directory = UserDirectory(session)
    freets = FreetStore(session)
    store = build_relationship_store(session, kind, directory=directory, freets=freets)
    service_cls: type[RelationshipService]
    if kind is FOLLOW:
        service_cls = FollowService
    elif kind.named:
        service_cls = CircleService
    else:
        service_cls = RelationshipService
    return service_cls(
        store=store,
        cache=RelationshipCache(cache_client, kind, session=session),
        directory=directory,
        freets=freets,
    )


__all__ = [
    "CircleService",
    "FollowService",
    "RelationshipService",
    "build_relationship_service",
    "build_relationship_store",
]
