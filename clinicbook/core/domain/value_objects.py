"""
Value object and status enum base classes.

Value objects are frozen and compared field by field; subclasses check
their own invariants in ``_validate``.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Self


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, identity-less domain value validated on construction."""

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        """Raise on invalid field combinations."""


@dataclass(frozen=True)
class Email(ValueObject):
    """Patient or clinic email address, stored trimmed and lowercased."""

    address: str

    def _validate(self) -> None:
        normalized = (self.address or "").strip().lower()
        local, _, domain = normalized.partition("@")
        if not local or not domain or " " in normalized:
            raise ValueError(f"Invalid email address: {self.address!r}")
        object.__setattr__(self, "address", normalized)

    def __str__(self) -> str:
        return self.address


class StatusEnum(str, Enum):
    """String enum stored and serialized by value."""

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Look up a member by value, ignoring case and surrounding spaces."""
        wanted = value.strip().lower()
        for member in cls:
            if member.value == wanted:
                return member
        raise ValueError(f"Invalid {cls.__name__}: {value!r} (expected one of {cls.values()})")
