"""Value objects passed between the directory, the relationship store and the
formatters.

They are plain frozen dataclasses: the store builds them from rows, the
formatters turn them into wire models, and nothing holds a database session
through them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

EntityType = Literal["user", "freet"]
CascadeOutcome = Literal["removed", "absent", "skipped", "deleted"]


@dataclass(frozen=True)
class EntitySnapshot:
    """Lightweight identity of a user or freet referenced by an aggregate."""

    id: str
    entity_type: EntityType
    label: str | None = None


@dataclass(frozen=True)
class PopulatedAggregate:
    """A relationship aggregate with every reference expanded to a snapshot."""

    id: str
    kind: str
    anchor: EntitySnapshot
    members: dict[str, tuple[EntitySnapshot, ...]]
    name: str | None = None

    def member_ids(self, member_set: str) -> list[str]:
        return [member.id for member in self.members.get(member_set, ())]


@dataclass(frozen=True)
class CascadeStep:
    """One idempotent step executed while cascading a deletion."""

    kind: str
    aggregate_key: str
    action: str
    outcome: CascadeOutcome
    member_set: str | None = None
    member_id: str | None = None


@dataclass
class CascadeReport:
    """Ordered record of a cascade, returned to callers and logged."""

    origin: str
    steps: list[CascadeStep] = field(default_factory=list)

    def record(self, step: CascadeStep) -> None:
        self.steps.append(step)

    def count(self, outcome: CascadeOutcome) -> int:
        return sum(1 for step in self.steps if step.outcome == outcome)

    @property
    def changed(self) -> bool:
        return any(step.outcome in ("removed", "deleted") for step in self.steps)

    def summary(self) -> str:
        return (
            f"{self.origin}: {len(self.steps)} step(s), "
            f"{self.count('removed')} removed, {self.count('deleted')} deleted, "
            f"{self.count('absent')} already absent, {self.count('skipped')} skipped"
        )
