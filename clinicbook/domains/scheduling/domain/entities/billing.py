"""
Billing Entities

Invoice (payment received at the visit) and PaymentRequest (payment still owed).
A completed appointment with a non-zero total has exactly one of them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from clinicbook.core.domain import AggregateRoot

from ..exceptions import InvalidTransition, ValidationError
from ..value_objects.appointment_status import PaymentStatus
from ..value_objects.time_range import TreatmentLineItem


@dataclass
class Invoice(AggregateRoot[str]):
    """Paid invoice with its line items."""

    appointment_id: str = ""
    patient_id: str = ""
    provider_id: str = ""
    total_cents: int = 0
    currency: str = "EUR"
    status: PaymentStatus = PaymentStatus.PAID
    line_items: list[TreatmentLineItem] = field(default_factory=list)
    issued_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        if self.total_cents < 0:
            raise ValidationError("Invoice total cannot be negative", field="total_cents")
        if self.line_items and sum(i.price_cents for i in self.line_items) != self.total_cents:
            raise ValidationError("Invoice total must equal the sum of its line items", field="total_cents")

    @classmethod
    def for_line_items(
        cls,
        appointment_id: str,
        patient_id: str,
        provider_id: str,
        line_items: list[TreatmentLineItem],
        currency: str = "EUR",
    ) -> "Invoice":
        """Factory method for a paid invoice covering the given items."""
        return cls(
            appointment_id=appointment_id,
            patient_id=patient_id,
            provider_id=provider_id,
            total_cents=sum(item.price_cents for item in line_items),
            currency=currency,
            line_items=list(line_items),
        )


@dataclass
class PaymentRequest(AggregateRoot[str]):
    """
    Outstanding payment owed by the patient.

    Sent by email after completion; can be resent, marked paid or cancelled.
    """

    appointment_id: str = ""
    patient_id: str = ""
    provider_id: str = ""
    amount_cents: int = 0
    currency: str = "EUR"
    status: PaymentStatus = PaymentStatus.PENDING
    recipient_contact: str | None = None
    description: str = ""
    sent_count: int = 0
    last_sent_at: datetime | None = None
    paid_at: datetime | None = None

    def __post_init__(self):
        if self.amount_cents <= 0:
            raise ValidationError("Payment request amount must be positive", field="amount_cents")

    def _ensure_pending(self, operation: str, target: PaymentStatus) -> None:
        if self.status != PaymentStatus.PENDING:
            raise InvalidTransition(self.status.value, target.value, operation=operation)

    def ensure_sendable(self) -> None:
        """Raise InvalidTransition if the request is paid or cancelled."""
        self._ensure_pending("send", PaymentStatus.PENDING)

    def record_sent(self, recipient: str | None = None) -> None:
        """Record a successful delivery of the request to the patient."""
        self._ensure_pending("send", PaymentStatus.PENDING)
        if recipient:
            self.recipient_contact = recipient
        self.sent_count += 1
        self.last_sent_at = datetime.now(UTC)
        self.touch()

    def mark_paid(self) -> None:
        self._ensure_pending("mark_paid", PaymentStatus.PAID)
        self.status = PaymentStatus.PAID
        self.paid_at = datetime.now(UTC)
        self.touch()

    def cancel(self) -> None:
        self._ensure_pending("cancel", PaymentStatus.CANCELLED)
        self.status = PaymentStatus.CANCELLED
        self.touch()

    def format_amount(self) -> str:
        return f"{self.amount_cents // 100}.{self.amount_cents % 100:02d} {self.currency}"
