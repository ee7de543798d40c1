"""
Entity and aggregate base classes.

Records with an identity (appointments, provider schedules, billing
records) derive from these; equality follows the id, not the fields.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, TypeVar
from uuid import uuid4

TId = TypeVar("TId")


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Entity(ABC, Generic[TId]):
    """
    Identified domain record with audit timestamps.

    Unsaved entities (``id is None``) are only equal to themselves.
    """

    id: TId | None = field(default=None)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or self.id is None or other.id is None:
            return False
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id)) if self.id is not None else id(self)

    def touch(self) -> None:
        """Stamp a modification."""
        self.updated_at = utcnow()


@dataclass
class AggregateRoot(Entity[TId], Generic[TId]):
    """
    Consistency boundary with a version counter.

    Repositories compare ``version`` when writing guarded updates.
    """

    version: int = field(default=0)

    def increment_version(self) -> None:
        self.version += 1
        self.touch()


def generate_uuid_str() -> str:
    """New random identifier for a persisted record."""
    return str(uuid4())
