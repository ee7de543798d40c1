"""
Provider Schedule Aggregate

Recurring weekly availability, emergency-reserved windows and dated exceptions of one provider.
"""

from dataclasses import dataclass, field
from datetime import date, time

from clinicbook.core.domain import AggregateRoot, Entity, ValueObject, generate_uuid_str

from ..exceptions import NotFound, ValidationError
from ..value_objects.appointment_status import ExceptionKind

DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _check_day(day_of_week: int) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValidationError(f"day_of_week must be 0-6, got {day_of_week}", field="day_of_week")


@dataclass(frozen=True)
class WorkingWindow(ValueObject):
    """
    Recurring working hours for one weekday (0=Monday, 6=Sunday).

    An optional break inside the window is excluded from bookable time.
    """

    day_of_week: int
    start: time
    end: time
    break_start: time | None = None
    break_end: time | None = None

    def _validate(self) -> None:
        _check_day(self.day_of_week)
        if self.start >= self.end:
            raise ValidationError("Window start must be before window end", field="start")
        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError("Break needs both start and end", field="break_start")
        if self.break_start is not None and self.break_end is not None:
            if self.break_start >= self.break_end:
                raise ValidationError("Break start must be before break end", field="break_start")
            if self.break_start < self.start or self.break_end > self.end:
                raise ValidationError("Break must lie inside its window", field="break_start")

    @property
    def has_break(self) -> bool:
        return self.break_start is not None

    def overlaps(self, other: "WorkingWindow") -> bool:
        if self.day_of_week != other.day_of_week:
            return False
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        text = f"{DAY_NAMES[self.day_of_week]} {self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"
        if self.break_start and self.break_end:
            text += f" (break {self.break_start.strftime('%H:%M')}-{self.break_end.strftime('%H:%M')})"
        return text


@dataclass(frozen=True)
class EmergencyWindow(ValueObject):
    """Recurring time kept free for urgent bookings."""

    day_of_week: int
    start: time
    end: time

    def _validate(self) -> None:
        _check_day(self.day_of_week)
        if self.start >= self.end:
            raise ValidationError("Emergency window start must be before its end", field="start")


@dataclass
class AvailabilityException(Entity[str]):
    """A dated absence (vacation, sick or personal day). Date range is inclusive."""

    provider_id: str = ""
    start_date: date | None = None
    end_date: date | None = None
    approved: bool = False
    kind: ExceptionKind = ExceptionKind.VACATION
    reason: str = ""

    def __post_init__(self):
        if self.start_date is None or self.end_date is None:
            raise ValidationError("Exception needs start and end dates", field="start_date")
        if self.start_date > self.end_date:
            raise ValidationError("Exception start_date must not be after end_date", field="start_date")

    def covers(self, day: date) -> bool:
        """Check if the exception includes the given date."""
        if self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date

    def blocks(self, day: date) -> bool:
        """Only approved exceptions block bookings."""
        return self.approved and self.covers(day)

    def approve(self) -> None:
        self.approved = True
        self.touch()


@dataclass
class ProviderSchedule(AggregateRoot[str]):
    """
    Provider schedule aggregate root.

    The aggregate id is the provider id. ``business_id`` is resolved once
    when the provider is set up and copied onto every booking.

    Example:
        ```python
        schedule = ProviderSchedule(provider_id="prov-1", business_id="biz-1")
        for day in range(5):
            schedule.add_window(
                WorkingWindow(day, time(9), time(17), break_start=time(12), break_end=time(13))
            )
        ```
    """

    provider_id: str = ""
    business_id: str = ""
    display_name: str = ""
    default_slot_minutes: int = 30

    working_windows: list[WorkingWindow] = field(default_factory=list)
    emergency_windows: list[EmergencyWindow] = field(default_factory=list)
    exceptions: list[AvailabilityException] = field(default_factory=list)

    def __post_init__(self):
        if not self.provider_id:
            raise ValidationError("provider_id is required", field="provider_id")
        if self.id is None:
            self.id = self.provider_id
        if self.default_slot_minutes <= 0:
            raise ValidationError("default_slot_minutes must be positive", field="default_slot_minutes")
        windows = list(self.working_windows)
        self.working_windows = []
        for window in windows:
            self._check_window(window)
            self.working_windows.append(window)

    def _check_window(self, window: WorkingWindow) -> None:
        for existing in self.working_windows:
            if existing.overlaps(window):
                raise ValidationError(
                    f"Working window {window} overlaps {existing}",
                    field="working_windows",
                )

    # Windows

    def add_window(self, window: WorkingWindow) -> None:
        """Add a working window, rejecting overlaps on the same weekday."""
        self._check_window(window)
        self.working_windows.append(window)
        self.touch()

    def add_emergency_window(self, window: EmergencyWindow) -> None:
        self.emergency_windows.append(window)
        self.touch()

    def replace_windows(
        self,
        working_windows: list[WorkingWindow],
        emergency_windows: list[EmergencyWindow] | None = None,
    ) -> None:
        """
        Replace the weekly availability as a whole.

        All windows are checked before anything changes, so a rejected set
        leaves the current availability untouched. Passing ``None`` for
        emergency windows keeps the existing ones.

        Raises:
            ValidationError: two working windows overlap on the same weekday
        """
        accepted: list[WorkingWindow] = []
        for window in working_windows:
            for existing in accepted:
                if existing.overlaps(window):
                    raise ValidationError(
                        f"Working window {window} overlaps {existing}",
                        field="working_windows",
                    )
            accepted.append(window)

        self.working_windows = accepted
        if emergency_windows is not None:
            self.emergency_windows = list(emergency_windows)
        self.touch()

    def set_default_slot_minutes(self, minutes: int) -> None:
        if minutes <= 0:
            raise ValidationError("default_slot_minutes must be positive", field="default_slot_minutes")
        self.default_slot_minutes = minutes
        self.touch()

    def windows_for(self, day_of_week: int) -> list[WorkingWindow]:
        """Get working windows of a weekday ordered by start time."""
        return sorted(
            (w for w in self.working_windows if w.day_of_week == day_of_week),
            key=lambda w: w.start,
        )

    def emergency_windows_for(self, day_of_week: int) -> list[EmergencyWindow]:
        return [w for w in self.emergency_windows if w.day_of_week == day_of_week]

    # Exceptions

    def add_exception(self, exception: AvailabilityException) -> None:
        if exception.provider_id and exception.provider_id != self.provider_id:
            raise ValidationError("Exception belongs to another provider", field="provider_id")
        exception.provider_id = self.provider_id
        exception.id = exception.id or generate_uuid_str()
        self.exceptions.append(exception)
        self.touch()

    def get_exception(self, exception_id: str) -> AvailabilityException:
        for exception in self.exceptions:
            if exception.id == exception_id:
                return exception
        raise NotFound("AvailabilityException", exception_id)

    def approve_exception(self, exception_id: str) -> AvailabilityException:
        """Approve a requested absence; from then on it blocks bookings on its dates."""
        exception = self.get_exception(exception_id)
        exception.approve()
        self.touch()
        return exception

    def blocking_exception(self, day: date) -> AvailabilityException | None:
        """Get the approved exception covering the date, if any."""
        for exception in self.exceptions:
            if exception.blocks(day):
                return exception
        return None
