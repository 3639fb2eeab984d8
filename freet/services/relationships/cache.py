"""Read-through cache for formatted relationship payloads."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from freet.cache import (
    CacheClient,
    defer_invalidation,
    relationship_all_key,
    relationship_anchor_key,
    relationship_member_key,
    relationship_namespace,
    relationship_owner_key,
)
from freet.services.relationships.formatters import RESPONSE_MODELS, FormattedAggregate
from freet.services.relationships.kinds import RelationshipKind

logger = logging.getLogger(__name__)


class RelationshipCache:
    """Typed cache helpers for one relationship kind.

    Payloads are stored in their wire form (``model_dump(by_alias=True)``) and
    revalidated into response models on the way out. Any mutation of the kind
    calls :meth:`invalidate`, which drops the whole namespace.
    """

    def __init__(
        self,
        client: CacheClient,
        kind: RelationshipKind,
        *,
        session: AsyncSession | None = None,
    ) -> None:
        self._client = client
        self._kind = kind
        self._session = session
        self._model = RESPONSE_MODELS[kind.name]

    async def _read_one(self, key: str) -> FormattedAggregate | None:
        cached = await self._client.get_json(key)
        return self._model.model_validate(cached) if cached is not None else None

    async def _read_many(self, key: str) -> list[FormattedAggregate] | None:
        cached = await self._client.get_json(key)
        if cached is None:
            return None
        return [self._model.model_validate(item) for item in cached]

    async def _write(self, key: str, payload: Any) -> None:
        if isinstance(payload, list):
            encoded = [item.model_dump(mode="json", by_alias=True) for item in payload]
        else:
            encoded = payload.model_dump(mode="json", by_alias=True)
        await self._client.set_json(key, encoded)

    async def read_all(self) -> list[FormattedAggregate] | None:
        return await self._read_many(relationship_all_key(self._kind.name))

    async def write_all(self, payload: list[FormattedAggregate]) -> None:
        await self._write(relationship_all_key(self._kind.name), payload)

    async def read_anchor(self, key: str) -> FormattedAggregate | None:
        return await self._read_one(relationship_anchor_key(self._kind.name, key))

    async def write_anchor(self, key: str, payload: FormattedAggregate) -> None:
        await self._write(relationship_anchor_key(self._kind.name, key), payload)

    async def read_owned(self, owner_id: str) -> list[FormattedAggregate] | None:
        return await self._read_many(relationship_owner_key(self._kind.name, owner_id))

    async def write_owned(self, owner_id: str, payload: list[FormattedAggregate]) -> None:
        await self._write(relationship_owner_key(self._kind.name, owner_id), payload)

    async def read_containing(self, member_id: str) -> list[FormattedAggregate] | None:
        return await self._read_many(relationship_member_key(self._kind.name, member_id))

    async def write_containing(
        self, member_id: str, payload: list[FormattedAggregate]
    ) -> None:
        await self._write(relationship_member_key(self._kind.name, member_id), payload)

    async def invalidate(self) -> None:
        """Drop every cached payload of this kind.

        With a session attached the purge is queued to run again after the
        session commits, so a read that raced the transaction and re-cached
        the old state does not outlive the commit.
        """

        pattern = f"{relationship_namespace(self._kind.name)}:*"
        logger.debug("Invalidating %s cache namespace", self._kind.name)
        await self._client.delete_pattern(pattern)
        if self._session is not None:
            defer_invalidation(self._session, self._client, pattern)


__all__ = ["RelationshipCache"]
