"""
Factory functions for scheduling test data.
"""

from datetime import date, datetime, time

from clinicbook.domains.scheduling.domain.entities import Appointment, ProviderSchedule, WorkingWindow
from clinicbook.domains.scheduling.domain.value_objects import AppointmentStatus

PROVIDER_ID = "prov-1"
PATIENT_ID = "pat-1"
# 2025-03-03 is a Monday
MONDAY = date(2025, 3, 3)
SATURDAY = date(2025, 3, 8)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """Naive local clinic time on the given day."""
    return datetime.combine(day, time(hour, minute))


def build_weekday_schedule(provider_id: str = PROVIDER_ID, **kwargs) -> ProviderSchedule:
    """Mon-Fri 09:00-17:00 with a 12:00-13:00 break."""
    kwargs.setdefault("business_id", "biz-1")
    kwargs.setdefault("display_name", "Dr. Rivera")
    schedule = ProviderSchedule(provider_id=provider_id, **kwargs)
    for day in range(5):
        schedule.add_window(WorkingWindow(day, time(9), time(17), break_start=time(12), break_end=time(13)))
    return schedule


def make_appointment(
    start_at: datetime,
    duration_minutes: int = 30,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    provider_id: str = PROVIDER_ID,
    patient_id: str = PATIENT_ID,
    appointment_id: str | None = None,
) -> Appointment:
    return Appointment(
        id=appointment_id,
        patient_id=patient_id,
        provider_id=provider_id,
        start_at=start_at,
        duration_minutes=duration_minutes,
        status=status,
    )
