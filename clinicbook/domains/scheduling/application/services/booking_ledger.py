"""
Booking Ledger

Authoritative store of appointments: race-safe reserve, confirm, cancel and reschedule.
"""

from datetime import datetime, timedelta

from clinicbook.core.shared.logger import get_service_logger
from clinicbook.domains.scheduling.application.dto.booking import BookingMetadata
from clinicbook.domains.scheduling.application.ports.appointment_port import IAppointmentRepository
from clinicbook.domains.scheduling.application.ports.schedule_port import IProviderScheduleRepository
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.entities.provider_schedule import ProviderSchedule
from clinicbook.domains.scheduling.domain.exceptions import (
    InvalidTransition,
    NotFound,
    SlotConflict,
    ValidationError,
)
from clinicbook.domains.scheduling.domain.services.appointment_state_machine import AppointmentStateMachine
from clinicbook.domains.scheduling.domain.services.slot_generator import SlotGenerator
from clinicbook.domains.scheduling.domain.value_objects.appointment_status import AppointmentStatus

from .keyed_locks import KeyedLocks, appointment_locks, provider_locks

logger = get_service_logger("booking_ledger")


class BookingLedger:
    """
    Application service owning appointment writes.

    Reservations for one provider are serialized by an in-process lock and a
    storage-level provider lock; the overlap check runs inside that section,
    right before the insert. Different providers never share a lock.

    Example:
        ```python
        ledger = BookingLedger(appointment_repo, schedule_repo)
        appointment = await ledger.reserve("prov-1", "pat-1", datetime(2025, 3, 3, 9), 30)
        await ledger.cancel(appointment.id, reason="Patient request", cancelled_by="patient")
        ```
    """

    def __init__(
        self,
        appointment_repository: IAppointmentRepository,
        schedule_repository: IProviderScheduleRepository,
        state_machine: AppointmentStateMachine | None = None,
        slot_generator: SlotGenerator | None = None,
        default_duration_minutes: int = 30,
        locks: KeyedLocks | None = None,
        record_locks: KeyedLocks | None = None,
    ):
        """
        Initialize ledger with dependencies.

        Args:
            appointment_repository: Appointment storage
            schedule_repository: Provider schedule storage
            state_machine: Transition rules and initial status policy
            slot_generator: Availability evaluation
            default_duration_minutes: Used when neither request nor provider sets one
            locks: Per-provider locks (process-wide by default)
            record_locks: Per-appointment locks (process-wide by default)
        """
        self.appointment_repo = appointment_repository
        self.schedule_repo = schedule_repository
        self.state_machine = state_machine or AppointmentStateMachine()
        self.slot_generator = slot_generator or SlotGenerator()
        self.default_duration_minutes = default_duration_minutes
        self.locks = locks or provider_locks
        self.record_locks = record_locks or appointment_locks

    # Validation

    @staticmethod
    def validate(start_at: datetime, duration_minutes: int) -> None:
        """Reject non-positive durations and timezone-aware start times."""
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive", field="duration_minutes")
        if start_at.tzinfo is not None:
            raise ValidationError(
                "Appointment times are naive local clinic time; got a timezone-aware value",
                field="start_at",
            )

    def _resolve_duration(self, schedule: ProviderSchedule, duration_minutes: int | None) -> int:
        if duration_minutes is not None:
            return duration_minutes
        return schedule.default_slot_minutes or self.default_duration_minutes

    async def get_schedule(self, provider_id: str) -> ProviderSchedule:
        schedule = await self.schedule_repo.find_by_provider_id(provider_id)
        if schedule is None:
            raise NotFound("Provider", provider_id)
        return schedule

    async def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.appointment_repo.find_by_id(appointment_id)
        if appointment is None:
            raise NotFound("Appointment", appointment_id)
        return appointment

    # Reserve

    async def reserve(
        self,
        provider_id: str,
        patient_id: str,
        start_at: datetime,
        duration_minutes: int | None = None,
        metadata: BookingMetadata | None = None,
    ) -> Appointment:
        """
        Atomically reserve an interval for a patient.

        Args:
            provider_id: Provider to book
            patient_id: Patient the appointment is for
            start_at: Start (naive local clinic time)
            duration_minutes: Length (provider default if not specified)
            metadata: Urgency, channel, reason and notes

        Returns:
            The stored appointment

        Raises:
            SlotConflict: interval overlaps an appointment or is not bookable
            NotFound: unknown provider
            ValidationError: malformed request
        """
        metadata = metadata or BookingMetadata()
        schedule = await self.get_schedule(provider_id)
        duration = self._resolve_duration(schedule, duration_minutes)
        self.validate(start_at, duration)
        end_at = start_at + timedelta(minutes=duration)
        log = logger.with_context(provider_id=provider_id, patient_id=patient_id)

        async with self.locks.hold(provider_id):
            await self.appointment_repo.lock_provider(provider_id)
            try:
                conflicts = await self.appointment_repo.find_conflicts(provider_id, start_at, end_at)
                slot = self.slot_generator.evaluate(schedule, start_at, duration, conflicts, urgent=metadata.urgent)
                if not slot.available:
                    reason = slot.reason.value if slot.reason else "booked"
                    log.info(f"Reservation refused at {start_at.isoformat()}: {reason}")
                    raise SlotConflict(
                        provider_id=provider_id,
                        start_at=start_at,
                        end_at=end_at,
                        conflicting_appointment_id=conflicts[0].id if conflicts else None,
                        reason=reason,
                    )

                appointment = Appointment(
                    id=None,
                    patient_id=patient_id,
                    provider_id=provider_id,
                    business_id=schedule.business_id or None,
                    start_at=start_at,
                    duration_minutes=duration,
                    status=self.state_machine.initial_status(metadata.channel),
                    urgency=metadata.urgency,
                    booking_channel=metadata.channel,
                    reason=metadata.reason,
                    notes=metadata.notes,
                    follow_up_of_id=metadata.follow_up_of_id,
                    treatment_plan_id=metadata.treatment_plan_id,
                )
                saved = await self.appointment_repo.add(appointment)
            except BaseException:
                # The storage lock must not outlive a refused or cancelled booking.
                await self.appointment_repo.release_provider(provider_id)
                raise

        log.info(f"Reserved appointment {saved.id} at {start_at.isoformat()} ({duration} min, {saved.status.value})")
        return saved

    # Status changes

    async def _write_transition(self, appointment: Appointment, previous: AppointmentStatus, target: str) -> Appointment:
        if not await self.appointment_repo.save_if_status(appointment, previous):
            current = await self.appointment_repo.find_by_id(appointment.id or "")
            raise InvalidTransition(current.status.value if current else "deleted", target)
        return appointment

    async def confirm(self, appointment_id: str) -> Appointment:
        """Move a pending appointment to confirmed."""
        async with self.record_locks.hold(appointment_id):
            appointment = await self.get_appointment(appointment_id)
            previous = appointment.status
            appointment.confirm(machine=self.state_machine)
            await self._write_transition(appointment, previous, AppointmentStatus.CONFIRMED.value)

        logger.info(f"Confirmed appointment {appointment_id}")
        return appointment

    async def cancel(self, appointment_id: str, reason: str = "", cancelled_by: str = "system") -> Appointment:
        """
        Cancel an appointment.

        Raises:
            NotFound: unknown appointment
            InvalidTransition: already completed or cancelled
        """
        async with self.record_locks.hold(appointment_id):
            appointment = await self.get_appointment(appointment_id)
            previous = appointment.status
            appointment.cancel(reason=reason or None, cancelled_by=cancelled_by, machine=self.state_machine)
            await self._write_transition(appointment, previous, AppointmentStatus.CANCELLED.value)

        logger.info(f"Cancelled appointment {appointment_id} by {cancelled_by}")
        return appointment

    async def reschedule(
        self,
        appointment_id: str,
        new_start_at: datetime,
        duration_minutes: int | None = None,
    ) -> Appointment:
        """
        Move a pending or confirmed appointment to a new interval.

        The overlap check ignores the appointment itself.
        """
        async with self.record_locks.hold(appointment_id):
            appointment = await self.get_appointment(appointment_id)
            if not appointment.status.is_active():
                raise InvalidTransition(appointment.status.value, appointment.status.value, operation="reschedule")

            provider_id = appointment.provider_id
            schedule = await self.get_schedule(provider_id)
            duration = duration_minutes if duration_minutes is not None else appointment.duration_minutes
            self.validate(new_start_at, duration)
            new_end_at = new_start_at + timedelta(minutes=duration)

            async with self.locks.hold(provider_id):
                await self.appointment_repo.lock_provider(provider_id)
                try:
                    conflicts = await self.appointment_repo.find_conflicts(
                        provider_id, new_start_at, new_end_at, exclude_appointment_id=appointment_id
                    )
                    slot = self.slot_generator.evaluate(
                        schedule, new_start_at, duration, conflicts, urgent=appointment.urgency.is_urgent()
                    )
                    if not slot.available:
                        raise SlotConflict(
                            provider_id=provider_id,
                            start_at=new_start_at,
                            end_at=new_end_at,
                            conflicting_appointment_id=conflicts[0].id if conflicts else None,
                            reason=slot.reason.value if slot.reason else "booked",
                        )

                    previous = appointment.status
                    appointment.move_to(new_start_at, duration)
                    await self._write_transition(appointment, previous, "reschedule")
                except BaseException:
                    await self.appointment_repo.release_provider(provider_id)
                    raise

        logger.info(f"Rescheduled appointment {appointment_id} to {new_start_at.isoformat()}")
        return appointment
