"""Test utilities and helpers."""

from tests.utils.factories import (
    MONDAY,
    PATIENT_ID,
    PROVIDER_ID,
    SATURDAY,
    at,
    build_weekday_schedule,
    make_appointment,
)

__all__ = [
    "MONDAY",
    "PATIENT_ID",
    "PROVIDER_ID",
    "SATURDAY",
    "at",
    "build_weekday_schedule",
    "make_appointment",
]
