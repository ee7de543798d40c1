"""
Manage Appointment Use Cases

Confirm, cancel and reschedule existing appointments.
"""

import logging
from datetime import datetime

from clinicbook.domains.scheduling.application.services.booking_ledger import BookingLedger
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment

logger = logging.getLogger(__name__)


class ConfirmAppointmentUseCase:
    """Use case for confirming a pending appointment."""

    def __init__(self, ledger: BookingLedger):
        self.ledger = ledger

    async def execute(self, appointment_id: str) -> Appointment:
        return await self.ledger.confirm(appointment_id)


class CancelAppointmentUseCase:
    """Use case for cancelling a pending or confirmed appointment."""

    def __init__(self, ledger: BookingLedger):
        self.ledger = ledger

    async def execute(self, appointment_id: str, reason: str = "", cancelled_by: str = "system") -> Appointment:
        """
        Cancel an appointment.

        Args:
            appointment_id: Appointment to cancel
            reason: Free-text cancellation reason
            cancelled_by: "patient", "provider", "staff" or "system"
        """
        return await self.ledger.cancel(appointment_id, reason=reason, cancelled_by=cancelled_by)


class RescheduleAppointmentUseCase:
    """Use case for moving an appointment to a new time."""

    def __init__(self, ledger: BookingLedger):
        self.ledger = ledger

    async def execute(
        self,
        appointment_id: str,
        new_start_at: datetime,
        duration_minutes: int | None = None,
    ) -> Appointment:
        appointment = await self.ledger.reschedule(appointment_id, new_start_at, duration_minutes)
        logger.debug(f"Appointment {appointment_id} now at {new_start_at.isoformat()}")
        return appointment
