"""
Unit tests for availability and slot generation.

Tests:
- intervals_overlap / TimeRange
- AvailabilityCalendar.bookable_ranges
- SlotGenerator.generate_slots / evaluate / first_available
"""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from clinicbook.domains.scheduling.domain.entities import AvailabilityException, EmergencyWindow, WorkingWindow
from clinicbook.domains.scheduling.domain.exceptions import NotFound, ValidationError
from clinicbook.domains.scheduling.domain.services.availability_calendar import AvailabilityCalendar
from clinicbook.domains.scheduling.domain.services.slot_generator import SlotGenerator
from clinicbook.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    SlotReason,
    TimeRange,
    intervals_overlap,
)
from tests.utils import MONDAY, SATURDAY, at, build_weekday_schedule, make_appointment

pytestmark = pytest.mark.unit


# ============================================================================
# Overlap predicate
# ============================================================================


class TestIntervalsOverlap:
    """Tests for the half-open overlap predicate."""

    @pytest.mark.parametrize(
        "b_start, b_end",
        [
            (at(9), at(10)),  # equal
            (at(9, 30), at(10, 30)),  # starts inside
            (at(8, 30), at(9, 30)),  # ends inside
            (at(8), at(11)),  # contains
            (at(9, 15), at(9, 45)),  # contained
        ],
    )
    def test_overlapping_cases(self, b_start, b_end):
        """Should report overlap for equal, partial and containing intervals."""
        assert intervals_overlap(at(9), at(10), b_start, b_end)
        assert intervals_overlap(b_start, b_end, at(9), at(10))

    def test_touching_intervals_do_not_overlap(self):
        """Should treat back-to-back intervals as free."""
        assert not intervals_overlap(at(9), at(10), at(10), at(11))
        assert not intervals_overlap(at(10), at(11), at(9), at(10))

    def test_time_range_rejects_empty_range(self):
        """Should reject ranges whose start is not before their end."""
        with pytest.raises(ValidationError):
            TimeRange(start=at(10), end=at(10))

    def test_time_range_rejects_mixed_timezones(self):
        """Should reject a naive start with an aware end."""
        with pytest.raises(ValidationError):
            TimeRange(start=at(9), end=at(10).replace(tzinfo=timezone.utc))


# ============================================================================
# AvailabilityCalendar
# ============================================================================


class TestAvailabilityCalendar:
    """Tests for bookable range computation."""

    def test_break_splits_window(self, weekday_schedule):
        """Should produce the ranges before and after the break."""
        ranges = AvailabilityCalendar().bookable_ranges(weekday_schedule, MONDAY)

        assert ranges == [TimeRange(at(9), at(12)), TimeRange(at(13), at(17))]

    def test_no_window_means_no_ranges(self, weekday_schedule):
        """Should return nothing on a day without working windows."""
        assert AvailabilityCalendar().bookable_ranges(weekday_schedule, SATURDAY) == []

    def test_approved_vacation_blocks_day(self, weekday_schedule):
        """Should return no ranges on a date covered by an approved exception."""
        # Arrange
        weekday_schedule.add_exception(
            AvailabilityException(start_date=MONDAY, end_date=MONDAY + timedelta(days=2), approved=True)
        )
        calendar = AvailabilityCalendar()

        # Act / Assert
        assert calendar.bookable_ranges(weekday_schedule, MONDAY) == []
        assert calendar.bookable_ranges(weekday_schedule, MONDAY + timedelta(days=2)) == []
        assert calendar.bookable_ranges(weekday_schedule, MONDAY + timedelta(days=3)) != []

    def test_unapproved_exception_does_not_block(self, weekday_schedule):
        """Should ignore exceptions that are not approved."""
        weekday_schedule.add_exception(AvailabilityException(start_date=MONDAY, end_date=MONDAY))

        assert AvailabilityCalendar().is_working_day(weekday_schedule, MONDAY)

    def test_break_covering_window_yields_nothing(self):
        """Should treat a break equal to the whole window as a day off."""
        schedule = build_weekday_schedule(provider_id="prov-2")
        schedule.working_windows = []
        schedule.add_window(WorkingWindow(0, time(9), time(12), break_start=time(9), break_end=time(12)))

        assert AvailabilityCalendar().bookable_ranges(schedule, MONDAY) == []

    def test_overlapping_windows_rejected(self, weekday_schedule):
        """Should refuse a second window overlapping an existing one."""
        with pytest.raises(ValidationError):
            weekday_schedule.add_window(WorkingWindow(0, time(16), time(18)))

    def test_break_outside_window_rejected(self):
        """Should refuse a break that is not inside its window."""
        with pytest.raises(ValidationError):
            WorkingWindow(0, time(9), time(12), break_start=time(11), break_end=time(13))


# ============================================================================
# ProviderSchedule editing
# ============================================================================


class TestScheduleEditing:
    """Tests for replacing windows and approving exceptions."""

    def test_replace_windows(self, weekday_schedule):
        """Should swap the whole week for the new windows."""
        weekday_schedule.replace_windows(
            [WorkingWindow(5, time(10), time(14))],
            [EmergencyWindow(5, time(13), time(14))],
        )

        calendar = AvailabilityCalendar()
        assert calendar.bookable_ranges(weekday_schedule, MONDAY) == []
        assert calendar.bookable_ranges(weekday_schedule, SATURDAY) == [
            TimeRange(datetime.combine(SATURDAY, time(10)), datetime.combine(SATURDAY, time(14)))
        ]
        assert weekday_schedule.emergency_windows == [EmergencyWindow(5, time(13), time(14))]

    def test_replace_with_overlap_keeps_current_windows(self, weekday_schedule):
        """Should reject an overlapping set without touching the existing week."""
        before = list(weekday_schedule.working_windows)

        with pytest.raises(ValidationError):
            weekday_schedule.replace_windows(
                [WorkingWindow(0, time(9), time(12)), WorkingWindow(0, time(11), time(15))]
            )

        assert weekday_schedule.working_windows == before

    def test_replace_without_emergency_keeps_them(self, emergency_schedule):
        reserved = list(emergency_schedule.emergency_windows)

        emergency_schedule.replace_windows([WorkingWindow(0, time(8), time(18))])

        assert emergency_schedule.emergency_windows == reserved

    def test_added_exception_gets_id(self, weekday_schedule):
        exception = AvailabilityException(start_date=MONDAY, end_date=MONDAY)

        weekday_schedule.add_exception(exception)

        assert exception.id
        assert exception.provider_id == weekday_schedule.provider_id

    def test_approve_exception_starts_blocking(self, weekday_schedule):
        """Should block the dates only once the exception is approved."""
        exception = AvailabilityException(start_date=MONDAY, end_date=MONDAY)
        weekday_schedule.add_exception(exception)
        calendar = AvailabilityCalendar()
        assert calendar.is_working_day(weekday_schedule, MONDAY)

        weekday_schedule.approve_exception(exception.id)

        assert not calendar.is_working_day(weekday_schedule, MONDAY)

    def test_approve_unknown_exception(self, weekday_schedule):
        with pytest.raises(NotFound):
            weekday_schedule.approve_exception("missing")

    def test_exception_without_dates_covers_nothing(self):
        """Should answer False instead of failing when dates were cleared."""
        exception = AvailabilityException(start_date=MONDAY, end_date=MONDAY)
        exception.end_date = None

        assert exception.covers(MONDAY) is False


# ============================================================================
# SlotGenerator
# ============================================================================


class TestGenerateSlots:
    """Tests for slot tiling."""

    def test_monday_thirty_minute_slots(self, weekday_schedule):
        """Should tile 09:00-11:30 and 13:00-16:30 with nothing inside the break."""
        # Act
        slots = SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30)

        # Assert
        starts = [s.start_time for s in slots]
        expected = [time(h, m) for h in (9, 10, 11) for m in (0, 30)] + [
            time(h, m) for h in (13, 14, 15, 16) for m in (0, 30)
        ]
        assert starts == expected
        assert len(slots) == 14
        assert all(s.available for s in slots)
        assert not any(time(12) <= s.start_time < time(13) for s in slots)

    def test_slots_stay_inside_bookable_ranges(self, weekday_schedule):
        """Should never produce a slot crossing a range boundary."""
        ranges = AvailabilityCalendar().bookable_ranges(weekday_schedule, MONDAY)

        for duration in (20, 30, 45, 50, 90):
            for slot in SlotGenerator().generate_slots(weekday_schedule, MONDAY, duration):
                assert any(r.contains(slot.time_range) for r in ranges)
                assert slot.duration_minutes == duration

    def test_trailing_remainder_dropped(self, weekday_schedule):
        """Should drop the partial slot at the end of a range."""
        slots = SlotGenerator().generate_slots(weekday_schedule, MONDAY, 45)

        afternoon = [s.start_time for s in slots if s.start_time >= time(13)]
        assert afternoon == [time(13), time(13, 45), time(14, 30), time(15, 15), time(16)]

    def test_provider_default_duration_used(self):
        """Should fall back to the provider's default slot length."""
        schedule = build_weekday_schedule(default_slot_minutes=60)

        slots = SlotGenerator().generate_slots(schedule, MONDAY)

        assert len(slots) == 7
        assert {s.duration_minutes for s in slots} == {60}

    def test_booked_slot_marked(self, weekday_schedule):
        """Should mark slots overlapping an occupying appointment as booked."""
        existing = [make_appointment(at(10), 45)]

        slots = {s.start_time: s for s in SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30, existing)}

        assert slots[time(10)].reason == SlotReason.BOOKED
        assert slots[time(10, 30)].reason == SlotReason.BOOKED
        assert slots[time(11)].available
        assert slots[time(9, 30)].available

    def test_cancelled_appointment_frees_slot(self, weekday_schedule):
        """Should ignore cancelled appointments."""
        existing = [make_appointment(at(10), 30, status=AppointmentStatus.CANCELLED)]

        slots = {s.start_time: s for s in SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30, existing)}

        assert slots[time(10)].available

    def test_completed_appointment_still_occupies(self, weekday_schedule):
        """Should keep completed appointments as occupied time."""
        existing = [make_appointment(at(10), 30, status=AppointmentStatus.COMPLETED)]

        slots = {s.start_time: s for s in SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30, existing)}

        assert slots[time(10)].reason == SlotReason.BOOKED

    def test_other_provider_ignored(self, weekday_schedule):
        """Should not block slots with another provider's appointments."""
        existing = [make_appointment(at(10), 30, provider_id="prov-9")]

        slots = {s.start_time: s for s in SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30, existing)}

        assert slots[time(10)].available

    def test_vacation_yields_no_slots(self, weekday_schedule):
        """Should produce zero slots on an approved vacation day."""
        weekday_schedule.add_exception(AvailabilityException(start_date=MONDAY, end_date=MONDAY, approved=True))

        assert SlotGenerator().generate_slots(weekday_schedule, MONDAY, 30) == []

    def test_emergency_window_reserved_unless_urgent(self, emergency_schedule):
        """Should keep emergency time for urgent requests only."""
        generator = SlotGenerator()

        normal = {s.start_time: s for s in generator.generate_slots(emergency_schedule, MONDAY, 30)}
        urgent = {s.start_time: s for s in generator.generate_slots(emergency_schedule, MONDAY, 30, urgent=True)}

        assert normal[time(16)].reason == SlotReason.EMERGENCY_RESERVED
        assert normal[time(15, 30)].available
        assert urgent[time(16)].available

    def test_non_positive_duration_rejected(self, weekday_schedule):
        """Should reject zero-length slots."""
        with pytest.raises(ValidationError):
            SlotGenerator().generate_slots(weekday_schedule, MONDAY, 0)


class TestEvaluate:
    """Tests for classifying arbitrary requested intervals."""

    def test_free_interval(self, weekday_schedule):
        """Should accept an off-grid interval inside working hours."""
        slot = SlotGenerator().evaluate(weekday_schedule, at(9, 10), 20)

        assert slot.available
        assert slot.start_at == at(9, 10)

    def test_crossing_break_is_outside_hours(self, weekday_schedule):
        """Should reject an interval running into the break."""
        slot = SlotGenerator().evaluate(weekday_schedule, at(11, 45), 30)

        assert slot.reason == SlotReason.OUTSIDE_HOURS

    def test_exception_reported_first(self, weekday_schedule):
        """Should report on_exception before any other reason."""
        weekday_schedule.add_exception(AvailabilityException(start_date=MONDAY, end_date=MONDAY, approved=True))

        slot = SlotGenerator().evaluate(weekday_schedule, at(7), 30, [make_appointment(at(7))])

        assert slot.reason == SlotReason.ON_EXCEPTION

    def test_overlap_reported_as_booked(self, weekday_schedule):
        """Should report booked for a partial overlap."""
        slot = SlotGenerator().evaluate(weekday_schedule, at(10, 15), 30, [make_appointment(at(10))])

        assert slot.reason == SlotReason.BOOKED

    def test_aware_datetime_rejected(self, weekday_schedule):
        """Should reject timezone-aware start times."""
        with pytest.raises(ValidationError):
            SlotGenerator().evaluate(weekday_schedule, at(10).replace(tzinfo=timezone.utc), 30)


class TestFirstAvailable:
    """Tests for the next-available search."""

    def test_skips_booked_and_past_slots(self, weekday_schedule):
        """Should return the first free slot at or after the given time."""
        existing = [make_appointment(at(10)), make_appointment(at(10, 30))]

        slot = SlotGenerator().first_available(weekday_schedule, at(9, 45), 30, existing)

        assert slot is not None
        assert slot.start_at == at(11)

    def test_rolls_over_weekend(self, weekday_schedule):
        """Should continue to the next working day."""
        friday_evening = datetime(2025, 3, 7, 18, 0)

        slot = SlotGenerator().first_available(weekday_schedule, friday_evening, 30)

        assert slot is not None
        assert slot.start_at == datetime(2025, 3, 10, 9, 0)

    def test_none_within_horizon(self, weekday_schedule):
        """Should return None when the horizon holds no free slot."""
        slot = SlotGenerator().first_available(weekday_schedule, datetime.combine(SATURDAY, time(8)), 30, search_days=2)

        assert slot is None

    def test_vacation_skipped(self, weekday_schedule):
        """Should skip days blocked by an approved exception."""
        weekday_schedule.add_exception(AvailabilityException(start_date=MONDAY, end_date=MONDAY, approved=True))

        slot = SlotGenerator().first_available(weekday_schedule, at(8), 30)

        assert slot is not None
        assert slot.date == date(2025, 3, 4)
