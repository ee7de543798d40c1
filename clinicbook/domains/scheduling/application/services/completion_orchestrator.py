"""
Completion Orchestrator

Runs the multi-step completion workflow of an appointment.

Steps and failure classes:
    1. treatment_record    fatal       clinical note from line items
    2. consultation_notes  fatal       clinical note from free-text notes
    3. billing             fatal       invoice (paid) or payment request (owed)
    4. prescriptions       non-fatal   one write per prescription
    5. treatment_plan      non-fatal   create or link, then attach to the appointment
    6. status              fatal       compare-and-set to completed (point of no return)
    -  payment_request_email non-fatal
    7. follow_up           non-fatal   booked through the BookingLedger
    8. notification        non-fatal   visit summary to the patient

A fatal failure, or losing the compare-and-set, deletes what this run wrote
and raises CompletionError; the appointment keeps its previous status.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import TypeVar

from clinicbook.core.domain import DomainException
from clinicbook.core.shared.logger import ContextLogger, get_service_logger
from clinicbook.domains.scheduling.application.dto.booking import BookingMetadata
from clinicbook.domains.scheduling.application.dto.completion import (
    CompletionRequest,
    CompletionResult,
    CompletionStep,
    StepOutcome,
    StepStatus,
)
from clinicbook.domains.scheduling.application.ports.appointment_port import IAppointmentRepository
from clinicbook.domains.scheduling.application.ports.clinical_port import (
    IBillingRepository,
    IClinicalNoteRepository,
    IPrescriptionRepository,
    ITreatmentPlanRepository,
)
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.entities.billing import Invoice, PaymentRequest
from clinicbook.domains.scheduling.domain.entities.clinical import ClinicalNote, Prescription, TreatmentPlan
from clinicbook.domains.scheduling.domain.exceptions import CompletionError, InvalidTransition, NotFound
from clinicbook.domains.scheduling.domain.services.appointment_state_machine import AppointmentStateMachine
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import (
    AppointmentStatus,
    BookingChannel,
    ClinicalNoteKind,
)

from .booking_ledger import BookingLedger
from .keyed_locks import KeyedLocks, appointment_locks
from .patient_notifier import PatientNotifier, format_cents

logger = get_service_logger("completion_orchestrator")

T = TypeVar("T")


@dataclass
class _CompletionRun:
    """Mutable bookkeeping of one complete() call."""

    appointment: Appointment
    request: CompletionRequest
    log: ContextLogger
    outcomes: list[StepOutcome] = field(default_factory=list)
    notes: list[ClinicalNote] = field(default_factory=list)
    invoice: Invoice | None = None
    payment_request: PaymentRequest | None = None
    prescriptions: list[Prescription] = field(default_factory=list)
    created_plan: TreatmentPlan | None = None
    treatment_plan_id: str | None = None
    follow_up: Appointment | None = None

    def record(self, step: CompletionStep, status: StepStatus, detail: str | None = None) -> None:
        self.outcomes.append(StepOutcome(step=step, status=status, detail=detail))

    def succeed(self, step: CompletionStep, detail: str | None = None) -> None:
        self.record(step, StepStatus.SUCCEEDED, detail)

    def skip(self, step: CompletionStep, detail: str | None = None) -> None:
        self.record(step, StepStatus.SKIPPED, detail)

    def fail(self, step: CompletionStep, detail: str) -> None:
        self.log.warning(f"Completion step {step.value} failed: {detail}", step=step.value)
        self.record(step, StepStatus.FAILED, detail)


class CompletionOrchestrator:
    """
    Stateless orchestrator: everything a run needs arrives in the CompletionRequest.

    Concurrent runs for one appointment are serialized in-process; across
    processes the status compare-and-set admits a single winner.

    Example:
        ```python
        result = await orchestrator.complete(
            appointment.id,
            CompletionRequest(
                line_items=(TreatmentLineItem("Filling", 1500, tooth_ref="16"),),
                payment_received=True,
            ),
        )
        assert result.invoice.total_cents == 1500
        ```
    """

    def __init__(
        self,
        appointment_repository: IAppointmentRepository,
        note_repository: IClinicalNoteRepository,
        billing_repository: IBillingRepository,
        prescription_repository: IPrescriptionRepository,
        treatment_plan_repository: ITreatmentPlanRepository,
        ledger: BookingLedger,
        notifier: PatientNotifier,
        state_machine: AppointmentStateMachine | None = None,
        side_effect_timeout_seconds: float = 10.0,
        currency: str = "EUR",
        locks: KeyedLocks | None = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            appointment_repository: Appointment storage (compare-and-set for step 6)
            note_repository: Clinical note storage
            billing_repository: Invoice and payment request storage
            prescription_repository: Prescription storage
            treatment_plan_repository: Treatment plan storage
            ledger: Booking ledger used for the follow-up
            notifier: Patient message delivery
            state_machine: Transition rules
            side_effect_timeout_seconds: Bound on follow-up booking
            currency: Currency of billing artifacts
            locks: Per-appointment locks (process-wide by default)
        """
        self.appointment_repo = appointment_repository
        self.note_repo = note_repository
        self.billing_repo = billing_repository
        self.prescription_repo = prescription_repository
        self.plan_repo = treatment_plan_repository
        self.ledger = ledger
        self.notifier = notifier
        self.state_machine = state_machine or ledger.state_machine
        self.side_effect_timeout_seconds = side_effect_timeout_seconds
        self.currency = currency
        self.locks = locks or appointment_locks

    async def complete(self, appointment_id: str, request: CompletionRequest) -> CompletionResult:
        """
        Complete an appointment.

        Args:
            appointment_id: Appointment to complete
            request: Treatments, notes, billing choice, prescriptions, plan and follow-up

        Returns:
            Result with one StepOutcome per step

        Raises:
            CompletionError: unknown or terminal appointment, a fatal step failed,
                or a concurrent completion won
        """
        async with self.locks.hold(appointment_id):
            appointment = await self.appointment_repo.find_by_id(appointment_id)
            if appointment is None:
                raise CompletionError(CompletionStep.STATUS.value, NotFound("Appointment", appointment_id), request)
            if not self.state_machine.can_transition(
                appointment.status, AppointmentStatus.COMPLETED, via_completion=True
            ):
                raise CompletionError(
                    CompletionStep.STATUS.value,
                    InvalidTransition(appointment.status.value, AppointmentStatus.COMPLETED.value),
                    request,
                )

            run = _CompletionRun(
                appointment=appointment,
                request=request,
                log=logger.with_context(appointment_id=appointment_id, provider_id=appointment.provider_id),
            )
            run.log.info(f"Completing appointment {appointment_id} (total {request.total_cents} cents)")

            try:
                await self._record_treatments(run)
                await self._record_consultation(run)
                await self._record_billing(run)
                await self._record_prescriptions(run)
                await self._resolve_treatment_plan(run)
                await self._mark_completed(run)
            except CompletionError as e:
                run.log.error(f"Completion aborted at {e.step}: {e.cause}", step=e.step)
                await self._compensate(run)
                raise

            await self._send_payment_request(run)
            await self._book_follow_up(run)
            await self._notify_patient(run)

        result = CompletionResult(
            appointment=run.appointment,
            outcomes=run.outcomes,
            invoice=run.invoice,
            payment_request=run.payment_request,
            prescriptions=run.prescriptions,
            treatment_plan_id=run.treatment_plan_id,
            follow_up_appointment=run.follow_up,
        )
        run.log.info(
            f"Completed appointment {appointment_id} with {len(result.failures)} non-fatal failure(s)"
        )
        return result

    # Fatal steps

    async def _record_treatments(self, run: _CompletionRun) -> None:
        step = CompletionStep.TREATMENT_RECORD
        if not run.request.line_items:
            run.skip(step, "No treatments supplied")
            return
        content = "\n".join(
            f"{item.describe()}: {format_cents(item.price_cents, self.currency)}" for item in run.request.line_items
        )
        note = await self._fatal_write(
            run, step, lambda: self.note_repo.add(self._note(run, ClinicalNoteKind.TREATMENT_RECORD, content))
        )
        run.notes.append(note)
        run.succeed(step, f"Clinical note {note.id}")

    async def _record_consultation(self, run: _CompletionRun) -> None:
        step = CompletionStep.CONSULTATION_NOTES
        if not run.request.has_consultation_notes:
            run.skip(step, "No consultation notes supplied")
            return
        note = await self._fatal_write(
            run,
            step,
            lambda: self.note_repo.add(self._note(run, ClinicalNoteKind.CONSULTATION, run.request.consultation_notes)),
        )
        run.notes.append(note)
        run.succeed(step, f"Clinical note {note.id}")

    async def _record_billing(self, run: _CompletionRun) -> None:
        step = CompletionStep.BILLING
        appointment = run.appointment
        total = run.request.total_cents
        if total <= 0:
            run.skip(step, "Nothing to bill")
            return

        if run.request.payment_received:
            run.invoice = await self._fatal_write(
                run,
                step,
                lambda: self.billing_repo.add_invoice(
                    Invoice.for_line_items(
                        appointment_id=appointment.id or "",
                        patient_id=appointment.patient_id,
                        provider_id=appointment.provider_id,
                        line_items=list(run.request.line_items),
                        currency=self.currency,
                    )
                ),
            )
            run.succeed(step, f"Invoice {run.invoice.id} paid ({format_cents(total, self.currency)})")
            return

        run.payment_request = await self._fatal_write(
            run,
            step,
            lambda: self.billing_repo.add_payment_request(
                PaymentRequest(
                    appointment_id=appointment.id or "",
                    patient_id=appointment.patient_id,
                    provider_id=appointment.provider_id,
                    amount_cents=total,
                    currency=self.currency,
                    description=", ".join(item.describe() for item in run.request.line_items),
                )
            ),
        )
        run.succeed(step, f"Payment request {run.payment_request.id} for {format_cents(total, self.currency)}")

    async def _mark_completed(self, run: _CompletionRun) -> None:
        step = CompletionStep.STATUS
        snapshot = replace(run.appointment)
        appointment = run.appointment
        previous = appointment.status
        try:
            appointment.mark_completed(
                consultation_notes=run.request.consultation_notes or None,
                completed_by=run.request.completed_by,
                machine=self.state_machine,
            )
            if run.treatment_plan_id:
                appointment.treatment_plan_id = run.treatment_plan_id
            won = await self.appointment_repo.save_if_status(appointment, previous)
        except Exception as e:
            run.appointment = snapshot
            raise CompletionError(step.value, e, run.request) from e

        if not won:
            run.appointment = snapshot
            current = await self.appointment_repo.find_by_id(appointment.id or "")
            cause = InvalidTransition(
                current.status.value if current else "deleted", AppointmentStatus.COMPLETED.value
            )
            raise CompletionError(step.value, cause, run.request)
        run.succeed(step)

    async def _fatal_write(self, run: _CompletionRun, step: CompletionStep, write: Callable[[], Awaitable[T]]) -> T:
        try:
            return await write()
        except Exception as e:
            raise CompletionError(step.value, e, run.request) from e

    # Non-fatal steps

    async def _record_prescriptions(self, run: _CompletionRun) -> None:
        step = CompletionStep.PRESCRIPTIONS
        if not run.request.prescriptions:
            run.skip(step, "No prescriptions supplied")
            return

        failures: list[str] = []
        for item in run.request.prescriptions:
            try:
                prescription = Prescription(
                    patient_id=run.appointment.patient_id,
                    provider_id=run.appointment.provider_id,
                    appointment_id=run.appointment.id,
                    medication=item.medication,
                    dosage=item.dosage,
                    frequency=item.frequency,
                    duration_text=item.duration_text,
                    instructions=item.instructions,
                )
                run.prescriptions.append(await self.prescription_repo.add(prescription))
            except Exception as e:
                run.log.exception(f"Prescription for {item.medication} failed")
                failures.append(f"{item.medication}: {e}")

        if failures:
            run.fail(step, f"{len(failures)} of {len(run.request.prescriptions)} failed: " + "; ".join(failures))
        else:
            run.succeed(step, f"{len(run.prescriptions)} prescription(s)")

    async def _resolve_treatment_plan(self, run: _CompletionRun) -> None:
        step = CompletionStep.TREATMENT_PLAN
        choice = run.request.treatment_plan
        if choice is None:
            run.skip(step, "No treatment plan selected")
            return

        try:
            if choice.create_new is not None:
                new = choice.create_new
                plan = await self.plan_repo.add(
                    TreatmentPlan(
                        patient_id=run.appointment.patient_id,
                        provider_id=run.appointment.provider_id,
                        title=new.title,
                        diagnosis=new.diagnosis,
                        priority=new.priority,
                        estimated_cost_cents=new.estimated_cost_cents,
                    )
                )
                run.created_plan = plan
                run.treatment_plan_id = plan.id
                run.succeed(step, f"Created treatment plan {plan.id}")
                return

            plan_id = choice.link_existing_id or ""
            existing = await self.plan_repo.find_by_id(plan_id)
            if existing is None:
                run.fail(step, f"Treatment plan {plan_id} not found")
                return
            if not existing.belongs_to(run.appointment.patient_id):
                run.fail(step, f"Treatment plan {plan_id} belongs to another patient")
                return
            if not existing.is_active():
                run.fail(step, f"Treatment plan {plan_id} is {existing.status.value}")
                return
            run.treatment_plan_id = existing.id
            run.succeed(step, f"Linked treatment plan {existing.id}")
        except Exception as e:
            run.log.exception("Treatment plan step failed")
            run.fail(step, str(e) or e.__class__.__name__)

    async def _send_payment_request(self, run: _CompletionRun) -> None:
        step = CompletionStep.PAYMENT_REQUEST_EMAIL
        payment_request = run.payment_request
        if payment_request is None:
            run.skip(step, "No payment request")
            return

        receipt = await self.notifier.send_payment_request(payment_request)
        if not receipt.success:
            run.fail(step, f"Payment request {payment_request.id} kept for resend: {receipt.error}")
            return
        try:
            payment_request.record_sent(receipt.recipient)
            await self.billing_repo.save_payment_request(payment_request)
        except Exception as e:
            run.log.exception("Could not record payment request delivery")
            run.fail(step, f"Sent but not recorded: {e}")
            return
        run.succeed(step, f"Sent to patient (message {receipt.message_id})")

    async def _book_follow_up(self, run: _CompletionRun) -> None:
        step = CompletionStep.FOLLOW_UP
        follow_up = run.request.follow_up
        if not follow_up.needed or follow_up.start_at is None:
            run.skip(step, "No follow-up requested")
            return

        appointment = run.appointment
        metadata = BookingMetadata(
            urgency=appointment.urgency,
            reason=follow_up.reason or f"Follow-up of {appointment.id}",
            channel=BookingChannel.STAFF,
            follow_up_of_id=appointment.id,
            treatment_plan_id=run.treatment_plan_id,
        )
        try:
            run.follow_up = await asyncio.wait_for(
                self.ledger.reserve(
                    appointment.provider_id,
                    appointment.patient_id,
                    follow_up.start_at,
                    follow_up.duration_minutes,
                    metadata,
                ),
                timeout=self.side_effect_timeout_seconds,
            )
        except TimeoutError:
            run.fail(step, f"Timed out after {self.side_effect_timeout_seconds}s")
            return
        except DomainException as e:
            run.fail(step, f"{e.code}: {e.message}")
            return
        except Exception as e:
            run.log.exception("Follow-up booking failed")
            run.fail(step, str(e) or e.__class__.__name__)
            return
        run.succeed(step, f"Follow-up appointment {run.follow_up.id}")

    async def _notify_patient(self, run: _CompletionRun) -> None:
        step = CompletionStep.NOTIFICATION
        receipt = await self.notifier.send_visit_summary(
            run.appointment,
            run.request.line_items,
            invoice=run.invoice,
            payment_request=run.payment_request,
            follow_up=run.follow_up,
        )
        if receipt.success:
            run.succeed(step, f"Message {receipt.message_id}")
        else:
            run.fail(step, receipt.error or "Delivery failed")

    # Compensation

    async def _compensate(self, run: _CompletionRun) -> None:
        """Delete artifacts written by this run, newest first."""
        deletions = []
        if run.created_plan is not None and run.created_plan.id:
            deletions.append(("treatment plan", run.created_plan.id, self.plan_repo.delete))
        for prescription in reversed(run.prescriptions):
            deletions.append(("prescription", prescription.id, self.prescription_repo.delete))
        if run.payment_request is not None:
            deletions.append(("payment request", run.payment_request.id, self.billing_repo.delete_payment_request))
        if run.invoice is not None:
            deletions.append(("invoice", run.invoice.id, self.billing_repo.delete_invoice))
        for note in reversed(run.notes):
            deletions.append(("clinical note", note.id, self.note_repo.delete))

        for label, artifact_id, delete in deletions:
            try:
                await delete(artifact_id)
            except Exception:
                run.log.exception(f"Could not roll back {label} {artifact_id}")

        if deletions:
            run.log.info(f"Rolled back {len(deletions)} artifact(s)")
        run.treatment_plan_id = None

    @staticmethod
    def _note(run: _CompletionRun, kind: ClinicalNoteKind, content: str) -> ClinicalNote:
        return ClinicalNote(
            appointment_id=run.appointment.id or "",
            patient_id=run.appointment.patient_id,
            provider_id=run.appointment.provider_id,
            kind=kind,
            content=content,
        )
