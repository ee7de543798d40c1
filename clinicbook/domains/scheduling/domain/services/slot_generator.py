"""
Slot Generator

Tiles bookable ranges into fixed-length slots and classifies requested intervals.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from ..entities.appointment import Appointment
from ..entities.provider_schedule import ProviderSchedule
from ..exceptions import ValidationError
from ..value_objects.appointment_status import SlotReason
from ..value_objects.time_range import Slot, TimeRange
from .availability_calendar import AvailabilityCalendar

logger = logging.getLogger(__name__)


class SlotGenerator:
    """
    Domain service producing slots for a provider and date.

    A slot is unavailable when it overlaps an appointment that still occupies
    time (pending, confirmed or completed), or when it overlaps an emergency
    window and the request is not urgent.

    Example:
        ```python
        generator = SlotGenerator()
        slots = generator.generate_slots(schedule, date(2025, 3, 3), 30, existing)
        free = [s for s in slots if s.available]
        ```
    """

    def __init__(self, calendar: AvailabilityCalendar | None = None):
        self.calendar = calendar or AvailabilityCalendar()

    def generate_slots(
        self,
        schedule: ProviderSchedule,
        day: date,
        duration_minutes: int | None = None,
        existing: Iterable[Appointment] = (),
        urgent: bool = False,
    ) -> list[Slot]:
        """
        Generate slots for one date.

        Args:
            schedule: Provider schedule aggregate
            day: Date to generate slots for
            duration_minutes: Slot length (provider default if not specified)
            existing: Appointments of the provider around that date
            urgent: Allow emergency-reserved time

        Returns:
            Slots in chronological order; a trailing remainder shorter than
            the duration is dropped
        """
        duration = self._resolve_duration(schedule, duration_minutes)
        booked = self._occupied_ranges(schedule, existing)
        step = timedelta(minutes=duration)

        slots: list[Slot] = []
        for bookable in self.calendar.bookable_ranges(schedule, day):
            cursor = bookable.start
            while cursor + step <= bookable.end:
                candidate = TimeRange(start=cursor, end=cursor + step)
                reason = self._blocking_reason(schedule, candidate, booked, urgent)
                slots.append(
                    Slot(
                        provider_id=schedule.provider_id,
                        date=day,
                        start_time=cursor.time(),
                        duration_minutes=duration,
                        available=reason is None,
                        reason=reason,
                    )
                )
                cursor += step

        logger.debug(
            f"Generated {len(slots)} slots for provider {schedule.provider_id} on {day.isoformat()}"
        )
        return slots

    def evaluate(
        self,
        schedule: ProviderSchedule,
        start_at: datetime,
        duration_minutes: int | None = None,
        existing: Iterable[Appointment] = (),
        urgent: bool = False,
    ) -> Slot:
        """
        Classify an arbitrary requested interval.

        Reasons are checked in order: on_exception, outside_hours, booked,
        emergency_reserved.
        """
        duration = self._resolve_duration(schedule, duration_minutes)
        if start_at.tzinfo is not None:
            raise ValidationError("Appointment times are naive local clinic time", field="start_at")

        requested = TimeRange.from_duration(start_at, duration)
        day = start_at.date()

        reason: SlotReason | None
        if self.calendar.blocking_exception(schedule, day) is not None:
            reason = SlotReason.ON_EXCEPTION
        elif not any(r.contains(requested) for r in self.calendar.bookable_ranges(schedule, day)):
            reason = SlotReason.OUTSIDE_HOURS
        else:
            booked = self._occupied_ranges(schedule, existing)
            reason = self._blocking_reason(schedule, requested, booked, urgent)

        return Slot(
            provider_id=schedule.provider_id,
            date=day,
            start_time=start_at.time(),
            duration_minutes=duration,
            available=reason is None,
            reason=reason,
        )

    def first_available(
        self,
        schedule: ProviderSchedule,
        after: datetime,
        duration_minutes: int | None = None,
        existing: Iterable[Appointment] = (),
        search_days: int = 14,
        urgent: bool = False,
    ) -> Slot | None:
        """
        Find the earliest available slot starting at or after a moment.

        Args:
            schedule: Provider schedule aggregate
            after: Earliest acceptable start
            duration_minutes: Slot length
            existing: Appointments of the provider within the search horizon
            search_days: Number of days to search, starting with after's date
            urgent: Allow emergency-reserved time

        Returns:
            First available slot or None
        """
        existing = list(existing)
        for offset in range(search_days):
            day = after.date() + timedelta(days=offset)
            for slot in self.generate_slots(schedule, day, duration_minutes, existing, urgent):
                if slot.available and slot.start_at >= after:
                    return slot
        return None

    @staticmethod
    def _resolve_duration(schedule: ProviderSchedule, duration_minutes: int | None) -> int:
        duration = schedule.default_slot_minutes if duration_minutes is None else duration_minutes
        if duration <= 0:
            raise ValidationError("Duration must be positive", field="duration_minutes")
        return duration

    @staticmethod
    def _occupied_ranges(schedule: ProviderSchedule, existing: Iterable[Appointment]) -> list[TimeRange]:
        return [
            appointment.time_range
            for appointment in existing
            if appointment.provider_id == schedule.provider_id
            and appointment.start_at is not None
            and appointment.occupies_time()
        ]

    @staticmethod
    def _blocking_reason(
        schedule: ProviderSchedule,
        candidate: TimeRange,
        booked: list[TimeRange],
        urgent: bool,
    ) -> SlotReason | None:
        if any(candidate.overlaps(occupied) for occupied in booked):
            return SlotReason.BOOKED
        if not urgent:
            day = candidate.start.date()
            for window in schedule.emergency_windows_for(day.weekday()):
                if candidate.overlaps(TimeRange.on_day(day, window.start, window.end)):
                    return SlotReason.EMERGENCY_RESERVED
        return None
