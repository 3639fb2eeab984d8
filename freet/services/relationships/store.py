"""Generic persistence for relationship aggregates.

Membership checks and membership updates are separate round trips; the store
never wraps them in a lock or compare-and-swap. Correctness under concurrent
requests comes from the storage primitives instead: set-add is
``INSERT ... ON CONFLICT DO NOTHING`` against the association table's unique
constraint and set-remove is a plain ``DELETE``, so two racing requests
converge on the same set whichever runs first.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from sqlalchemy import and_, delete, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from freet.db.models import new_id, utcnow
from freet.errors import DuplicateAggregate, NotFound
from freet.services.relationships.kinds import (
    ENTITY_MODELS,
    MemberSet,
    RelationshipKind,
    entity_label_column,
)
from freet.services.types import EntitySnapshot, PopulatedAggregate

logger = logging.getLogger(__name__)

AnchorResolver = Callable[[str], Awaitable[str | None]]

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RelationshipStore:
    """Create, query and mutate the aggregates of one relationship kind.

    ``key`` arguments are the canonical value of the kind's key column (user
    id for follows, freet id for likes and refreets, circle id for circles).
    Only :meth:`find_by_anchor` accepts an unresolved reference; it runs the
    ``resolver`` first so a username can stand in for a user id.
    """

    def __init__(
        self,
        session: AsyncSession,
        kind: RelationshipKind,
        *,
        resolver: AnchorResolver | None = None,
    ) -> None:
        self._session = session
        self._kind = kind
        self._resolver = resolver

    @property
    def kind(self) -> RelationshipKind:
        return self._kind

    # -- creation ---------------------------------------------------------

    async def create(self, anchor_id: str, *, name: str | None = None) -> PopulatedAggregate:
        """Persist an aggregate with empty sets (a circle starts with its owner)."""

        kind = self._kind
        if kind.unique_per_anchor and await self._exists_where(
            kind.anchor_column == anchor_id
        ):
            raise DuplicateAggregate(
                f"{kind.title} for {kind.anchor_type} with ID {anchor_id} already exists.",
                tag=kind.exists_tag,
            )
        if kind.named:
            if not name:
                raise ValueError(f"{kind.name} aggregates require a name")
            if await self._exists_where(
                kind.anchor_column == anchor_id, kind.model.name == name
            ):
                raise DuplicateAggregate(
                    f"{kind.title} named {name} already exists for this owner.",
                    tag=kind.exists_tag,
                )

        aggregate_id = new_id()
        values: dict[str, Any] = {"id": aggregate_id, kind.anchor_attr: anchor_id}
        if kind.named:
            values["name"] = name
        await self._session.execute(insert(kind.model).values(**values))

        if kind.owner_is_member:
            await self._insert_member(aggregate_id, anchor_id, kind.default_set)

        logger.debug("Created %s %s for anchor %s", kind.name, aggregate_id, anchor_id)
        return await self._require_loaded(aggregate_id)

    # -- queries ----------------------------------------------------------

    async def find_by_anchor(self, ref: str) -> PopulatedAggregate | None:
        """Resolve ``ref`` to a key and load the aggregate, ``None`` on any miss."""

        key = await self.resolve_key(ref)
        if key is None:
            return None
        return await self.find_by_key(key)

    async def find_by_key(self, key: str) -> PopulatedAggregate | None:
        loaded = await self._load_where(self._kind.key_column == key)
        return loaded[0] if loaded else None

    async def resolve_key(self, ref: str) -> str | None:
        if self._resolver is None:
            return ref
        return await self._resolver(ref)

    async def find_all(self) -> list[PopulatedAggregate]:
        return await self._load_where()

    async def find_all_by_anchor(self, anchor_id: str) -> list[PopulatedAggregate]:
        """Aggregates anchored on ``anchor_id`` (e.g. circles owned by a user)."""

        return await self._load_where(self._kind.anchor_column == anchor_id)

    async def find_all_by_member(
        self, member_id: str, member_set: str | None = None
    ) -> list[PopulatedAggregate]:
        """Aggregates whose set (any set when ``member_set`` is None) holds ``member_id``."""

        sets = (
            self._kind.member_sets
            if member_set is None
            else (self._kind.member_set(member_set),)
        )
        clauses = [
            self._kind.model.id.in_(
                select(ms.table.c.aggregate_id).where(ms.table.c.member_id == member_id)
            )
            for ms in sets
        ]
        return await self._load_where(or_(*clauses))

    async def exists(self, key: str) -> bool:
        return await self._exists_where(self._kind.key_column == key)

    async def anchor_of(self, key: str) -> str | None:
        """Anchor id of the aggregate addressed by ``key`` (circle owner, etc.)."""

        result = await self._session.execute(
            select(self._kind.anchor_column).where(self._kind.key_column == key)
        )
        return result.scalar_one_or_none()

    async def is_member(
        self, key: str, candidate_id: str, member_set: str | None = None
    ) -> bool:
        """True iff ``candidate_id`` is currently in the aggregate's set."""

        table = self._kind.member_set(member_set).table
        model = self._kind.model
        stmt = (
            select(table.c.id)
            .join(model, model.id == table.c.aggregate_id)
            .where(self._kind.key_column == key, table.c.member_id == candidate_id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.first() is not None

    # -- mutations --------------------------------------------------------

    async def add_member(
        self, key: str, candidate_id: str, member_set: str | None = None
    ) -> PopulatedAggregate:
        """Idempotently add ``candidate_id`` and return the persisted state."""

        aggregate_id = await self._require_aggregate_id(key)
        await self._insert_member(
            aggregate_id, candidate_id, self._kind.member_set(member_set)
        )
        return await self._require_loaded(aggregate_id)

    async def remove_member(
        self, key: str, candidate_id: str, member_set: str | None = None
    ) -> PopulatedAggregate:
        """Idempotently remove ``candidate_id`` and return the persisted state."""

        aggregate_id = await self._require_aggregate_id(key)
        await self._delete_member(
            aggregate_id, candidate_id, self._kind.member_set(member_set)
        )
        return await self._require_loaded(aggregate_id)

    async def discard_member(
        self, key: str, candidate_id: str, member_set: str | None = None
    ) -> bool | None:
        """Remove without re-fetching.

        Returns ``True`` when a row was removed, ``False`` when the member was
        already absent and ``None`` when the aggregate does not exist. Cascades
        use this to record what each step did.
        """

        aggregate_id = await self._aggregate_id(key)
        if aggregate_id is None:
            return None
        removed = await self._delete_member(
            aggregate_id, candidate_id, self._kind.member_set(member_set)
        )
        return removed > 0

    async def remove_member_everywhere(self, member_id: str, member_set: str) -> int:
        """Drop ``member_id`` from ``member_set`` of every aggregate of this kind."""

        table = self._kind.member_set(member_set).table
        result = await self._session.execute(
            delete(table).where(table.c.member_id == member_id)
        )
        return result.rowcount or 0

    async def delete_aggregate(self, key: str) -> bool:
        """Delete the aggregate and its set rows; ``False`` if it did not exist."""

        aggregate_id = await self._aggregate_id(key)
        if aggregate_id is None:
            return False

        for member_set in self._kind.member_sets:
            table = member_set.table
            await self._session.execute(
                delete(table).where(table.c.aggregate_id == aggregate_id)
            )
        model = self._kind.model
        await self._session.execute(
            delete(model)
            .where(model.id == aggregate_id)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Deleted %s %s (key %s)", self._kind.name, aggregate_id, key)
        return True

    # -- internals --------------------------------------------------------

    async def _exists_where(self, *criteria: Any) -> bool:
        result = await self._session.execute(
            select(self._kind.model.id).where(*criteria).limit(1)
        )
        return result.first() is not None

    async def _aggregate_id(self, key: str) -> str | None:
        model = self._kind.model
        result = await self._session.execute(
            select(model.id).where(self._kind.key_column == key)
        )
        return result.scalar_one_or_none()

    async def _require_aggregate_id(self, key: str) -> str:
        aggregate_id = await self._aggregate_id(key)
        if aggregate_id is None:
            raise NotFound(
                f"{self._kind.title} with key {key} does not exist.",
                tag=self._kind.not_found_tag,
            )
        return aggregate_id

    async def _require_loaded(self, aggregate_id: str) -> PopulatedAggregate:
        loaded = await self._load_where(self._kind.model.id == aggregate_id)
        if not loaded:
            raise NotFound(
                f"{self._kind.title} {aggregate_id} vanished during the update.",
                tag=self._kind.not_found_tag,
            )
        return loaded[0]

    def _insert_ignoring_duplicates(self, member_set: MemberSet) -> Any:
        dialect = self._session.get_bind().dialect.name
        try:
            insert_factory = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise RuntimeError(
                f"Set updates are not supported on the {dialect!r} dialect"
            ) from None
        return insert_factory(member_set.table).on_conflict_do_nothing()

    async def _insert_member(
        self, aggregate_id: str, member_id: str, member_set: MemberSet
    ) -> None:
        stmt = self._insert_ignoring_duplicates(member_set).values(
            aggregate_id=aggregate_id,
            member_id=member_id,
            added_at=utcnow(),
        )
        await self._session.execute(stmt)

    async def _delete_member(
        self, aggregate_id: str, member_id: str, member_set: MemberSet
    ) -> int:
        table = member_set.table
        result = await self._session.execute(
            delete(table).where(
                and_(table.c.aggregate_id == aggregate_id, table.c.member_id == member_id)
            )
        )
        return result.rowcount or 0

    def _order_by(self, label_column: Any) -> Sequence[Any]:
        model = self._kind.model
        if self._kind.sort == "name":
            return (model.name, model.id)
        if self._kind.sort == "anchor_label":
            return (label_column, model.id)
        return (model.created_at, model.id)

    async def _load_where(self, *criteria: Any) -> list[PopulatedAggregate]:
        """Load aggregates matching ``criteria`` with every reference expanded."""

        kind = self._kind
        model = kind.model
        anchor_model = ENTITY_MODELS[kind.anchor_type]
        label_column = entity_label_column(kind.anchor_type)

        columns = [model.id, kind.anchor_column, label_column]
        if kind.named:
            columns.append(model.name)

        stmt = (
            select(*columns)
            .join(anchor_model, anchor_model.id == kind.anchor_column)
            .where(*criteria)
            .order_by(*self._order_by(label_column))
        )
        rows = (await self._session.execute(stmt)).all()
        if not rows:
            return []

        aggregate_ids = [row[0] for row in rows]
        members = await self._load_members(aggregate_ids)

        aggregates: list[PopulatedAggregate] = []
        for row in rows:
            aggregate_id, anchor_id, anchor_label = row[0], row[1], row[2]
            aggregates.append(
                PopulatedAggregate(
                    id=aggregate_id,
                    kind=kind.name,
                    anchor=EntitySnapshot(
                        id=anchor_id, entity_type=kind.anchor_type, label=anchor_label
                    ),
                    members={
                        ms.name: tuple(members[ms.name].get(aggregate_id, ()))
                        for ms in kind.member_sets
                    },
                    name=row[3] if kind.named else None,
                )
            )
        return aggregates

    async def _load_members(
        self, aggregate_ids: list[str]
    ) -> dict[str, dict[str, list[EntitySnapshot]]]:
        """Return ``{set name: {aggregate id: [snapshot, ...]}}`` in insertion order."""

        loaded: dict[str, dict[str, list[EntitySnapshot]]] = {}
        for member_set in self._kind.member_sets:
            table = member_set.table
            entity = ENTITY_MODELS[member_set.entity_type]
            label_column = entity_label_column(member_set.entity_type)
            stmt = (
                select(table.c.aggregate_id, entity.id, label_column)
                .join_from(table, entity, entity.id == table.c.member_id)
                .where(table.c.aggregate_id.in_(aggregate_ids))
                .order_by(table.c.aggregate_id, table.c.id)
            )
            by_aggregate: dict[str, list[EntitySnapshot]] = {}
            for aggregate_id, member_id, label in (await self._session.execute(stmt)).all():
                by_aggregate.setdefault(aggregate_id, []).append(
                    EntitySnapshot(
                        id=member_id, entity_type=member_set.entity_type, label=label
                    )
                )
            loaded[member_set.name] = by_aggregate
        return loaded
