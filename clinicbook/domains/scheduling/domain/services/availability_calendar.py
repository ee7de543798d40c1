"""
Availability Calendar

Turns a provider's weekly windows, breaks and dated exceptions into bookable time ranges.
"""

from datetime import date

from ..entities.provider_schedule import AvailabilityException, ProviderSchedule, WorkingWindow
from ..value_objects.time_range import TimeRange


class AvailabilityCalendar:
    """
    Domain service computing bookable ranges for a provider and date.

    Example:
        ```python
        calendar = AvailabilityCalendar()
        ranges = calendar.bookable_ranges(schedule, date(2025, 3, 3))
        # [09:00-12:00, 13:00-17:00] for a 9-17 window with a 12-13 break
        ```
    """

    def bookable_ranges(self, schedule: ProviderSchedule, day: date) -> list[TimeRange]:
        """
        Get ordered bookable ranges for a date.

        Args:
            schedule: Provider schedule aggregate
            day: Calendar date (local clinic time)

        Returns:
            Ranges ordered by start; empty if an approved exception covers the date
            or no window exists for the weekday
        """
        if schedule.blocking_exception(day) is not None:
            return []

        ranges: list[TimeRange] = []
        for window in schedule.windows_for(day.weekday()):
            ranges.extend(self._window_ranges(window, day))
        return ranges

    def blocking_exception(self, schedule: ProviderSchedule, day: date) -> AvailabilityException | None:
        """Get the approved exception responsible for a blocked date."""
        return schedule.blocking_exception(day)

    def is_working_day(self, schedule: ProviderSchedule, day: date) -> bool:
        return bool(self.bookable_ranges(schedule, day))

    @staticmethod
    def _window_ranges(window: WorkingWindow, day: date) -> list[TimeRange]:
        if window.break_start is None or window.break_end is None:
            return [TimeRange.on_day(day, window.start, window.end)]

        # A break covering the whole window leaves nothing.
        parts = []
        if window.start < window.break_start:
            parts.append(TimeRange.on_day(day, window.start, window.break_start))
        if window.break_end < window.end:
            parts.append(TimeRange.on_day(day, window.break_end, window.end))
        return parts
