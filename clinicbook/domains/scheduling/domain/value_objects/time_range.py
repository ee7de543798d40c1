"""
Time Value Objects

Half-open time intervals, derived slots and treatment line items.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from clinicbook.core.domain import ValueObject

from ..exceptions import ValidationError
from .appointment_status import SlotReason


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Check whether two half-open intervals [start, end) share any instant.

    Covers equal starts, start inside, end inside and full containment.
    Touching intervals (a_end == b_start) do not overlap.
    """
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    def _validate(self) -> None:
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValidationError("Cannot mix naive and timezone-aware datetimes", field="start")
        if self.start >= self.end:
            raise ValidationError("Range start must be before range end", field="start")

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "TimeRange":
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))

    @classmethod
    def on_day(cls, day: date, start: time, end: time) -> "TimeRange":
        return cls(start=datetime.combine(day, start), end=datetime.combine(day, end))

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps another."""
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def contains(self, other: "TimeRange") -> bool:
        """Check if other lies entirely within this range."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%H:%M')}"


@dataclass(frozen=True)
class Slot(ValueObject):
    """
    A bookable (or blocked) slot derived from a provider's availability.

    Slots are never stored; they are recomputed on every request.
    """

    provider_id: str
    date: date
    start_time: time
    duration_minutes: int
    available: bool
    reason: SlotReason | None = None

    def _validate(self) -> None:
        if self.duration_minutes <= 0:
            raise ValidationError("Slot duration must be positive", field="duration_minutes")
        if self.available and self.reason is not None:
            raise ValidationError("Available slots carry no reason", field="reason")

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def end_at(self) -> datetime:
        return self.start_at + timedelta(minutes=self.duration_minutes)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_at, end=self.end_at)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "provider_id": self.provider_id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_at.strftime("%H:%M"),
            "duration_minutes": self.duration_minutes,
            "available": self.available,
            "reason": self.reason.value if self.reason else None,
        }


@dataclass(frozen=True)
class TreatmentLineItem(ValueObject):
    """A billed treatment performed during an appointment."""

    name: str
    price_cents: int
    tooth_ref: str | None = None

    def _validate(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Treatment name is required", field="name")
        if self.price_cents < 0:
            raise ValidationError("Treatment price cannot be negative", field="price_cents")

    def describe(self) -> str:
        if self.tooth_ref:
            return f"{self.name} (tooth {self.tooth_ref})"
        return self.name
