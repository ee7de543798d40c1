"""
Integration tests for the SQLAlchemy scheduling repositories.

Runs against SQLite (aiosqlite), including the partial unique index on
occupying appointment starts.
"""

from datetime import time, timedelta

import pytest

from clinicbook.domains.scheduling.application.dto.completion import CompletionRequest, PrescriptionInput
from clinicbook.domains.scheduling.domain.entities import (
    AvailabilityException,
    ClinicalNote,
    EmergencyWindow,
    Invoice,
    PaymentRequest,
    TreatmentPlan,
    WorkingWindow,
)
from clinicbook.domains.scheduling.domain.exceptions import SlotConflict
from clinicbook.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    ClinicalNoteKind,
    PaymentStatus,
    TreatmentLineItem,
)
from clinicbook.domains.scheduling.infrastructure.repositories import (
    SQLAlchemyAppointmentRepository,
    SQLAlchemyBillingRepository,
    SQLAlchemyClinicalNoteRepository,
    SQLAlchemyContactDirectory,
    SQLAlchemyPrescriptionRepository,
    SQLAlchemyProviderScheduleRepository,
    SQLAlchemyTreatmentPlanRepository,
)
from tests.utils import MONDAY, PATIENT_ID, PROVIDER_ID, at, make_appointment

pytestmark = [pytest.mark.integration, pytest.mark.repository]


# ============================================================================
# Provider schedules
# ============================================================================


class TestScheduleRepository:
    """Tests for SQLAlchemyProviderScheduleRepository."""

    @pytest.mark.asyncio
    async def test_load_seeded_schedule(self, db_session):
        schedule = await SQLAlchemyProviderScheduleRepository(db_session).find_by_provider_id(PROVIDER_ID)

        assert schedule is not None
        assert schedule.business_id == "biz-1"
        assert len(schedule.working_windows) == 5
        monday = schedule.windows_for(0)[0]
        assert (monday.start, monday.end) == (time(9), time(17))
        assert (monday.break_start, monday.break_end) == (time(12), time(13))

    @pytest.mark.asyncio
    async def test_save_replaces_children(self, db_session):
        """Should persist exceptions and emergency windows on save."""
        # Arrange
        repo = SQLAlchemyProviderScheduleRepository(db_session)
        schedule = await repo.find_by_provider_id(PROVIDER_ID)
        schedule.add_emergency_window(EmergencyWindow(0, time(16), time(17)))
        schedule.add_exception(
            AvailabilityException(start_date=MONDAY, end_date=MONDAY + timedelta(days=4), approved=True)
        )

        # Act
        await repo.save(schedule)
        reloaded = await repo.find_by_provider_id(PROVIDER_ID)

        # Assert
        assert len(reloaded.emergency_windows) == 1
        assert len(reloaded.exceptions) == 1
        assert reloaded.blocking_exception(MONDAY + timedelta(days=2)) is not None

    @pytest.mark.asyncio
    async def test_approval_of_stored_exception_persists(self, db_session):
        """Should keep the exception id across saves and store its approval."""
        # Arrange
        repo = SQLAlchemyProviderScheduleRepository(db_session)
        schedule = await repo.find_by_provider_id(PROVIDER_ID)
        schedule.add_exception(AvailabilityException(start_date=MONDAY, end_date=MONDAY))
        stored = await repo.save(schedule)
        (exception,) = stored.exceptions

        # Act
        stored.approve_exception(exception.id)
        await repo.save(stored)
        reloaded = await repo.find_by_provider_id(PROVIDER_ID)

        # Assert
        assert [e.id for e in reloaded.exceptions] == [exception.id]
        assert reloaded.blocking_exception(MONDAY).id == exception.id

    @pytest.mark.asyncio
    async def test_replaced_windows_persist(self, db_session):
        repo = SQLAlchemyProviderScheduleRepository(db_session)
        schedule = await repo.find_by_provider_id(PROVIDER_ID)
        schedule.replace_windows([WorkingWindow(5, time(10), time(14))], [])

        await repo.save(schedule)
        reloaded = await repo.find_by_provider_id(PROVIDER_ID)

        assert reloaded.working_windows == [WorkingWindow(5, time(10), time(14))]
        assert reloaded.emergency_windows == []

    @pytest.mark.asyncio
    async def test_unknown_provider(self, db_session):
        assert await SQLAlchemyProviderScheduleRepository(db_session).find_by_provider_id("nobody") is None


# ============================================================================
# Appointments
# ============================================================================


class TestAppointmentRepository:
    """Tests for SQLAlchemyAppointmentRepository."""

    @pytest.mark.asyncio
    async def test_add_and_find(self, db_session):
        repo = SQLAlchemyAppointmentRepository(db_session)

        saved = await repo.add(make_appointment(at(9), 45, status=AppointmentStatus.PENDING))
        found = await repo.find_by_id(saved.id)

        assert found is not None
        assert found.start_at == at(9)
        assert found.end_at == at(9, 45)
        assert found.status == AppointmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_find_conflicts_half_open(self, db_session):
        """Should return overlapping occupying appointments only."""
        # Arrange
        repo = SQLAlchemyAppointmentRepository(db_session)
        first = await repo.add(make_appointment(at(9)))
        await repo.add(make_appointment(at(10), status=AppointmentStatus.CANCELLED))

        # Act / Assert
        assert [a.id for a in await repo.find_conflicts(PROVIDER_ID, at(9, 15), at(9, 45))] == [first.id]
        assert await repo.find_conflicts(PROVIDER_ID, at(9, 30), at(10)) == []
        assert await repo.find_conflicts(PROVIDER_ID, at(10), at(10, 30)) == []
        assert await repo.find_conflicts(PROVIDER_ID, at(9), at(9, 30), exclude_appointment_id=first.id) == []

    @pytest.mark.asyncio
    async def test_unique_occupying_start(self, db_session):
        """Should reject a second occupying appointment at the same start."""
        repo = SQLAlchemyAppointmentRepository(db_session)
        await repo.add(make_appointment(at(9)))

        with pytest.raises(SlotConflict):
            await repo.add(make_appointment(at(9), patient_id="pat-2"))

        # The session is still usable after the rejected insert.
        assert len(await repo.find_by_provider(PROVIDER_ID, at(0), at(23))) == 1

    @pytest.mark.asyncio
    async def test_cancelled_start_can_be_reused(self, db_session):
        repo = SQLAlchemyAppointmentRepository(db_session)
        await repo.add(make_appointment(at(9), status=AppointmentStatus.CANCELLED))

        again = await repo.add(make_appointment(at(9), patient_id="pat-2"))

        assert again.patient_id == "pat-2"

    @pytest.mark.asyncio
    async def test_save_if_status_compare_and_set(self, db_session):
        """Should only write when the stored status matches."""
        # Arrange
        repo = SQLAlchemyAppointmentRepository(db_session)
        saved = await repo.add(make_appointment(at(9), status=AppointmentStatus.PENDING))

        # Act
        saved.confirm()
        won = await repo.save_if_status(saved, AppointmentStatus.PENDING)
        stale = await repo.find_by_id(saved.id)
        stale.cancel()
        lost = await repo.save_if_status(stale, AppointmentStatus.PENDING)

        # Assert
        assert won is True
        assert lost is False
        stored = await repo.find_by_id(saved.id)
        assert stored.status == AppointmentStatus.CONFIRMED
        assert stored.version == 1

    @pytest.mark.asyncio
    async def test_find_starting_between(self, db_session):
        """Should return pending and confirmed appointments starting inside the half-open range."""
        # Arrange
        repo = SQLAlchemyAppointmentRepository(db_session)
        pending = await repo.add(make_appointment(at(11), status=AppointmentStatus.PENDING))
        confirmed = await repo.add(make_appointment(at(11, 10), 5, patient_id="pat-2"))
        await repo.add(make_appointment(at(11, 5), 5, status=AppointmentStatus.CANCELLED))
        await repo.add(make_appointment(at(11, 15)))
        await repo.add(make_appointment(at(10, 45)))

        # Act
        found = await repo.find_starting_between(at(11), at(11, 15))

        # Assert
        assert [a.id for a in found] == [pending.id, confirmed.id]


# ============================================================================
# Billing and clinical records
# ============================================================================


class TestBillingRepository:
    """Tests for SQLAlchemyBillingRepository."""

    @pytest.mark.asyncio
    async def test_invoice_with_items(self, db_session):
        repo = SQLAlchemyBillingRepository(db_session)
        items = [TreatmentLineItem("Filling", 1500, tooth_ref="16"), TreatmentLineItem("X-ray", 2000)]
        invoice = await repo.add_invoice(
            Invoice.for_line_items("apt-1", PATIENT_ID, PROVIDER_ID, items)
        )

        (found,) = await repo.find_invoices_by_appointment("apt-1")

        assert found.id == invoice.id
        assert found.total_cents == 3500
        assert found.line_items == items
        assert await repo.delete_invoice(invoice.id)
        assert await repo.find_invoices_by_appointment("apt-1") == []

    @pytest.mark.asyncio
    async def test_payment_request_lifecycle(self, db_session):
        """Should persist sends and payment."""
        # Arrange
        repo = SQLAlchemyBillingRepository(db_session)
        payment_request = await repo.add_payment_request(
            PaymentRequest(appointment_id="apt-1", patient_id=PATIENT_ID, provider_id=PROVIDER_ID, amount_cents=900)
        )

        # Act
        payment_request.record_sent("ana@example.com")
        await repo.save_payment_request(payment_request)
        payment_request.mark_paid()
        await repo.save_payment_request(payment_request)

        # Assert
        stored = await repo.find_payment_request(payment_request.id)
        assert stored.sent_count == 1
        assert stored.recipient_contact == "ana@example.com"
        assert stored.status == PaymentStatus.PAID
        assert stored.paid_at is not None


class TestClinicalRepositories:
    """Tests for notes, prescriptions, plans and contacts."""

    @pytest.mark.asyncio
    async def test_clinical_note(self, db_session):
        repo = SQLAlchemyClinicalNoteRepository(db_session)
        note = await repo.add(
            ClinicalNote(
                appointment_id="apt-1",
                patient_id=PATIENT_ID,
                provider_id=PROVIDER_ID,
                kind=ClinicalNoteKind.TREATMENT_RECORD,
                content="Filling",
            )
        )

        (found,) = await repo.find_by_appointment("apt-1")

        assert found.kind == ClinicalNoteKind.TREATMENT_RECORD
        assert await repo.delete(note.id)

    @pytest.mark.asyncio
    async def test_treatment_plan(self, db_session):
        repo = SQLAlchemyTreatmentPlanRepository(db_session)
        plan = await repo.add(TreatmentPlan(patient_id=PATIENT_ID, provider_id=PROVIDER_ID, title="Braces"))

        found = await repo.find_by_id(plan.id)

        assert found.title == "Braces"
        assert found.belongs_to(PATIENT_ID)
        assert await repo.delete(plan.id)
        assert await repo.find_by_id(plan.id) is None

    @pytest.mark.asyncio
    async def test_contact_directory(self, db_session):
        directory = SQLAlchemyContactDirectory(db_session)

        contact = await directory.get_contact(PATIENT_ID)

        assert contact.email == "ana@example.com"
        assert await directory.get_contact("unknown") is None


# ============================================================================
# Services on the database
# ============================================================================


class TestServicesOnDatabase:
    """Runs the ledger and orchestrator against SQL repositories."""

    @pytest.mark.asyncio
    async def test_book_cancel_rebook(self, db_session, container):
        ledger = container.create_booking_ledger(db_session)

        first = await ledger.reserve(PROVIDER_ID, PATIENT_ID, at(9), 30)
        with pytest.raises(SlotConflict):
            await ledger.reserve(PROVIDER_ID, "pat-2", at(9, 15), 30)
        await ledger.cancel(first.id, cancelled_by="patient")
        second = await ledger.reserve(PROVIDER_ID, "pat-2", at(9), 30)

        assert second.start_at == at(9)

    @pytest.mark.asyncio
    async def test_complete_unpaid_visit(self, db_session, container):
        """Should store notes, a payment request and prescriptions, then complete."""
        # Arrange
        ledger = container.create_booking_ledger(db_session)
        appointment = await ledger.reserve(PROVIDER_ID, PATIENT_ID, at(10), 30)
        orchestrator = container.create_completion_orchestrator(db_session)
        request = CompletionRequest(
            line_items=[TreatmentLineItem("Filling", 1500, tooth_ref="16")],
            consultation_notes="Caries on 16",
            prescriptions=[PrescriptionInput("Ibuprofen", dosage="400mg")],
        )

        # Act
        result = await orchestrator.complete(appointment.id, request)

        # Assert
        assert result.fully_succeeded
        billing = SQLAlchemyBillingRepository(db_session)
        (payment_request,) = await billing.find_payment_requests_by_appointment(appointment.id)
        assert payment_request.sent_count == 1
        assert await billing.find_invoices_by_appointment(appointment.id) == []
        assert len(await SQLAlchemyClinicalNoteRepository(db_session).find_by_appointment(appointment.id)) == 2
        assert len(await SQLAlchemyPrescriptionRepository(db_session).find_by_appointment(appointment.id)) == 1
        stored = await SQLAlchemyAppointmentRepository(db_session).find_by_id(appointment.id)
        assert stored.status == AppointmentStatus.COMPLETED
        assert stored.consultation_notes == "Caries on 16"
