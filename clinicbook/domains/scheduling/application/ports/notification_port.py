# ============================================================================
# SCOPE: APPLICATION LAYER (Scheduling)
# Description: Notification gateway and contact directory ports (DIP compliant).
# ============================================================================
"""Notification Gateway Port.

Defines the interface for delivering patient messages and looking up
patient contact data. Delivery mechanics (email, SMS) live in adapters.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from clinicbook.core.domain import StatusEnum
from clinicbook.domains.scheduling.domain.entities.patient_contact import PatientContact


class NotificationKind(StatusEnum):
    """Kinds of patient notifications."""

    BOOKING_CONFIRMATION = "booking_confirmation"
    PAYMENT_REQUEST = "payment_request"
    VISIT_SUMMARY = "visit_summary"
    APPOINTMENT_REMINDER = "appointment_reminder"


@dataclass(frozen=True)
class NotificationReceipt:
    """Result of a delivery attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    recipient: str | None = None

    @classmethod
    def failed(cls, error: str) -> "NotificationReceipt":
        return cls(success=False, error=error)


@runtime_checkable
class INotificationGateway(Protocol):
    """Interface for patient notifications.

    Implementations: EmailNotificationGateway, LoggingNotificationGateway, RecordingNotificationGateway
    """

    async def send(
        self,
        recipient_id: str,
        contact: PatientContact,
        subject: str,
        body: str,
        kind: NotificationKind,
    ) -> NotificationReceipt:
        """Deliver one message.

        Args:
            recipient_id: Patient ID.
            contact: Patient contact data.
            subject: Message subject.
            body: Plain-text body.
            kind: Notification kind.

        Returns:
            Delivery receipt. Implementations report failures in the receipt
            rather than raising.
        """
        ...


@runtime_checkable
class IContactDirectory(Protocol):
    """Read-only access to patient contact data."""

    async def get_contact(self, patient_id: str) -> PatientContact | None:
        """Get contact data for a patient, or None if unknown."""
        ...
