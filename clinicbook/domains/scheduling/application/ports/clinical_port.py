# ============================================================================
# SCOPE: APPLICATION LAYER (Scheduling)
# Description: Ports for artifacts written by the completion workflow.
# ============================================================================
"""
Clinical and Billing Ports

Every port used by the completion workflow exposes a delete so that
artifacts written before a fatal failure can be removed again.
"""

from typing import Protocol, runtime_checkable

from clinicbook.domains.scheduling.domain.entities.billing import Invoice, PaymentRequest
from clinicbook.domains.scheduling.domain.entities.clinical import ClinicalNote, Prescription, TreatmentPlan


@runtime_checkable
class IClinicalNoteRepository(Protocol):
    """Clinical note storage."""

    async def add(self, note: ClinicalNote) -> ClinicalNote: ...

    async def find_by_appointment(self, appointment_id: str) -> list[ClinicalNote]: ...

    async def delete(self, note_id: str) -> bool: ...


@runtime_checkable
class IBillingRepository(Protocol):
    """Invoice and payment request storage."""

    async def add_invoice(self, invoice: Invoice) -> Invoice:
        """Persist an invoice together with its line items."""
        ...

    async def find_invoices_by_appointment(self, appointment_id: str) -> list[Invoice]: ...

    async def delete_invoice(self, invoice_id: str) -> bool: ...

    async def add_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest: ...

    async def find_payment_request(self, payment_request_id: str) -> PaymentRequest | None: ...

    async def find_payment_requests_by_appointment(self, appointment_id: str) -> list[PaymentRequest]: ...

    async def save_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest: ...

    async def delete_payment_request(self, payment_request_id: str) -> bool: ...


@runtime_checkable
class IPrescriptionRepository(Protocol):
    """Prescription storage."""

    async def add(self, prescription: Prescription) -> Prescription: ...

    async def find_by_appointment(self, appointment_id: str) -> list[Prescription]: ...

    async def delete(self, prescription_id: str) -> bool: ...


@runtime_checkable
class ITreatmentPlanRepository(Protocol):
    """Treatment plan storage."""

    async def find_by_id(self, plan_id: str) -> TreatmentPlan | None: ...

    async def add(self, plan: TreatmentPlan) -> TreatmentPlan: ...

    async def delete(self, plan_id: str) -> bool: ...
