"""
Book Appointment Use Case

Use case for booking appointments through the booking ledger.
Follows Clean Architecture and SOLID principles.
"""

import logging

from clinicbook.domains.scheduling.application.dto.booking import BookAppointmentRequest, BookAppointmentResponse
from clinicbook.domains.scheduling.application.services.booking_ledger import BookingLedger
from clinicbook.domains.scheduling.application.services.patient_notifier import PatientNotifier

logger = logging.getLogger(__name__)


class BookAppointmentUseCase:
    """
    Use case for booking appointments.

    Single Responsibility: reserves through the ledger, then sends the
    confirmation email. The email is best effort; its failure is reported
    in the response and never undoes the booking.
    """

    def __init__(self, ledger: BookingLedger, notifier: PatientNotifier | None = None):
        """
        Initialize use case with dependencies.

        Args:
            ledger: Booking ledger
            notifier: Patient notifier for the confirmation email
        """
        self.ledger = ledger
        self.notifier = notifier

    async def execute(self, request: BookAppointmentRequest) -> BookAppointmentResponse:
        """
        Execute appointment booking use case.

        Raises:
            SlotConflict: the interval is no longer free
            NotFound: unknown provider
            ValidationError: malformed request
        """
        appointment = await self.ledger.reserve(
            provider_id=request.provider_id,
            patient_id=request.patient_id,
            start_at=request.start_at,
            duration_minutes=request.duration_minutes,
            metadata=request.metadata,
        )
        response = BookAppointmentResponse(appointment=appointment)

        if request.send_confirmation and self.notifier is not None:
            schedule = await self.ledger.get_schedule(request.provider_id)
            receipt = await self.notifier.send_booking_confirmation(appointment, schedule.display_name)
            response.confirmation_sent = receipt.success
            response.confirmation_error = receipt.error
            if not receipt.success:
                logger.warning(f"Booking confirmation for {appointment.id} not sent: {receipt.error}")

        return response
