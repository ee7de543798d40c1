"""
Shared pytest fixtures for all tests.

Provides provider schedules, in-memory repositories, a recording
notification gateway and fully wired scheduling services.
"""

import os
from datetime import time

import pytest

from clinicbook.domains.scheduling.application.services.booking_ledger import BookingLedger
from clinicbook.domains.scheduling.application.services.completion_orchestrator import CompletionOrchestrator
from clinicbook.domains.scheduling.application.services.keyed_locks import KeyedLocks
from clinicbook.domains.scheduling.application.services.patient_notifier import PatientNotifier
from clinicbook.domains.scheduling.domain.entities import EmergencyWindow, PatientContact, ProviderSchedule
from clinicbook.domains.scheduling.domain.services.appointment_state_machine import AppointmentStateMachine
from clinicbook.domains.scheduling.infrastructure.notifications import RecordingNotificationGateway
from clinicbook.domains.scheduling.infrastructure.repositories import (
    InMemoryAppointmentRepository,
    InMemoryBillingRepository,
    InMemoryClinicalNoteRepository,
    InMemoryContactDirectory,
    InMemoryPrescriptionRepository,
    InMemoryProviderScheduleRepository,
    InMemoryTreatmentPlanRepository,
)
from tests.utils import PATIENT_ID, build_weekday_schedule

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"


# ============================================================================
# SCHEDULE FIXTURES
# ============================================================================


@pytest.fixture
def weekday_schedule() -> ProviderSchedule:
    """Mon-Fri 09:00-17:00 with a 12:00-13:00 break, 30-minute slots."""
    return build_weekday_schedule()


@pytest.fixture
def emergency_schedule() -> ProviderSchedule:
    """Weekday schedule keeping Monday 16:00-17:00 for urgent bookings."""
    schedule = build_weekday_schedule()
    schedule.add_emergency_window(EmergencyWindow(0, time(16), time(17)))
    return schedule


# ============================================================================
# REPOSITORY FIXTURES
# ============================================================================


@pytest.fixture
def appointment_repo() -> InMemoryAppointmentRepository:
    return InMemoryAppointmentRepository()


@pytest.fixture
def schedule_repo(emergency_schedule) -> InMemoryProviderScheduleRepository:
    return InMemoryProviderScheduleRepository([emergency_schedule])


@pytest.fixture
def note_repo() -> InMemoryClinicalNoteRepository:
    return InMemoryClinicalNoteRepository()


@pytest.fixture
def billing_repo() -> InMemoryBillingRepository:
    return InMemoryBillingRepository()


@pytest.fixture
def prescription_repo() -> InMemoryPrescriptionRepository:
    return InMemoryPrescriptionRepository()


@pytest.fixture
def plan_repo() -> InMemoryTreatmentPlanRepository:
    return InMemoryTreatmentPlanRepository()


@pytest.fixture
def contacts() -> InMemoryContactDirectory:
    return InMemoryContactDirectory(
        [PatientContact(patient_id=PATIENT_ID, name="Ana Torres", email="ana@example.com", phone="+34600000000")]
    )


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def gateway() -> RecordingNotificationGateway:
    return RecordingNotificationGateway()


@pytest.fixture
def notifier(gateway, contacts) -> PatientNotifier:
    return PatientNotifier(gateway=gateway, contacts=contacts, timeout_seconds=1.0)


@pytest.fixture
def state_machine() -> AppointmentStateMachine:
    return AppointmentStateMachine()


@pytest.fixture
def ledger(appointment_repo, schedule_repo, state_machine) -> BookingLedger:
    return BookingLedger(
        appointment_repository=appointment_repo,
        schedule_repository=schedule_repo,
        state_machine=state_machine,
        locks=KeyedLocks(),
        record_locks=KeyedLocks(),
    )


@pytest.fixture
def orchestrator(
    appointment_repo, note_repo, billing_repo, prescription_repo, plan_repo, ledger, notifier
) -> CompletionOrchestrator:
    return CompletionOrchestrator(
        appointment_repository=appointment_repo,
        note_repository=note_repo,
        billing_repository=billing_repo,
        prescription_repository=prescription_repo,
        treatment_plan_repository=plan_repo,
        ledger=ledger,
        notifier=notifier,
        side_effect_timeout_seconds=1.0,
        locks=ledger.record_locks,
    )
