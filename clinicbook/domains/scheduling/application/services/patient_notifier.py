"""
Patient Notifier

Composes patient messages and delivers them through the notification gateway.
Delivery problems are reported in the receipt and never raised.
"""

import asyncio

from clinicbook.core.shared.logger import get_service_logger
from clinicbook.domains.scheduling.application.ports.notification_port import (
    IContactDirectory,
    INotificationGateway,
    NotificationKind,
    NotificationReceipt,
)
from clinicbook.domains.scheduling.domain.entities.appointment import Appointment
from clinicbook.domains.scheduling.domain.entities.billing import Invoice, PaymentRequest
from clinicbook.domains.scheduling.domain.value_objects.time_range import TreatmentLineItem

logger = get_service_logger("patient_notifier")


def format_cents(amount_cents: int, currency: str) -> str:
    return f"{amount_cents // 100}.{amount_cents % 100:02d} {currency}"


class PatientNotifier:
    """
    Sends booking confirmations, reminders, payment requests and visit summaries.

    Every send is bounded by ``timeout_seconds``; a timeout counts as a failed delivery.
    """

    def __init__(
        self,
        gateway: INotificationGateway,
        contacts: IContactDirectory,
        timeout_seconds: float = 10.0,
        currency: str = "EUR",
    ):
        self.gateway = gateway
        self.contacts = contacts
        self.timeout_seconds = timeout_seconds
        self.currency = currency

    async def _deliver(self, patient_id: str, subject: str, body: str, kind: NotificationKind) -> NotificationReceipt:
        try:
            contact = await self.contacts.get_contact(patient_id)
            if contact is None:
                return NotificationReceipt.failed(f"No contact data for patient {patient_id}")
            return await asyncio.wait_for(
                self.gateway.send(patient_id, contact, subject, body, kind),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(f"{kind.value} notification to {patient_id} timed out", patient_id=patient_id)
            return NotificationReceipt.failed(f"Timed out after {self.timeout_seconds}s")
        except Exception as e:
            logger.exception(f"{kind.value} notification to {patient_id} failed", patient_id=patient_id)
            return NotificationReceipt.failed(str(e) or e.__class__.__name__)

    async def send_booking_confirmation(self, appointment: Appointment, provider_name: str = "") -> NotificationReceipt:
        when = appointment.start_at.strftime("%A %d %B %Y at %H:%M") if appointment.start_at else "a time to be confirmed"
        with_whom = f" with {provider_name}" if provider_name else ""
        state = "confirmed" if appointment.status.value == "confirmed" else "received and awaiting confirmation"
        body = (
            f"Your appointment{with_whom} on {when} ({appointment.duration_minutes} minutes) "
            f"has been {state}.\n\nReference: {appointment.id}"
        )
        return await self._deliver(
            appointment.patient_id, "Your appointment", body, NotificationKind.BOOKING_CONFIRMATION
        )

    async def send_reminder(
        self, appointment: Appointment, hours_before: int, provider_name: str = ""
    ) -> NotificationReceipt:
        when = appointment.start_at.strftime("%A %d %B %Y at %H:%M")
        with_whom = f" with {provider_name}" if provider_name else ""
        lead = "in 1 hour" if hours_before == 1 else f"in {hours_before} hours"
        lines = [f"This is a reminder that your appointment{with_whom} is coming up {lead}, on {when}."]
        if appointment.reason:
            lines.append(f"Reason: {appointment.reason}")
        lines.append("")
        lines.append("Please arrive 10 minutes early. If you need to reschedule, contact us at least 24 hours ahead.")
        lines.append(f"Reference: {appointment.id}")
        return await self._deliver(
            appointment.patient_id,
            f"Appointment reminder: {appointment.start_at.strftime('%d %B %Y')}",
            "\n".join(lines),
            NotificationKind.APPOINTMENT_REMINDER,
        )

    async def send_payment_request(self, payment_request: PaymentRequest) -> NotificationReceipt:
        amount = format_cents(payment_request.amount_cents, payment_request.currency)
        body = (
            f"A payment of {amount} is due for your recent visit.\n\n"
            f"{payment_request.description}\n\nPayment reference: {payment_request.id}"
        )
        return await self._deliver(
            payment_request.patient_id, f"Payment request: {amount}", body, NotificationKind.PAYMENT_REQUEST
        )

    async def send_visit_summary(
        self,
        appointment: Appointment,
        line_items: tuple[TreatmentLineItem, ...],
        invoice: Invoice | None = None,
        payment_request: PaymentRequest | None = None,
        follow_up: Appointment | None = None,
    ) -> NotificationReceipt:
        lines = ["Thank you for your visit. Summary:"]
        if line_items:
            lines.append("")
            lines.append("Treatments:")
            for item in line_items:
                lines.append(f"- {item.describe()}: {format_cents(item.price_cents, self.currency)}")
        lines.append("")
        if invoice is not None:
            lines.append(f"Paid: {format_cents(invoice.total_cents, invoice.currency)} (invoice {invoice.id})")
        elif payment_request is not None:
            lines.append(
                f"Amount due: {format_cents(payment_request.amount_cents, payment_request.currency)}; "
                "a payment request has been sent separately."
            )
        else:
            lines.append("Nothing to pay for this visit.")
        if follow_up is not None and follow_up.start_at is not None:
            lines.append(f"Follow-up booked for {follow_up.start_at.strftime('%A %d %B %Y at %H:%M')}.")
        return await self._deliver(
            appointment.patient_id, "Your visit summary", "\n".join(lines), NotificationKind.VISIT_SUMMARY
        )
