"""
Billing Repository Implementation

SQLAlchemy implementation of IBillingRepository (invoices and payment requests).
"""

import logging

from sqlalchemy import delete, select

from clinicbook.core.domain import generate_uuid_str
from clinicbook.domains.scheduling.application.ports.clinical_port import IBillingRepository
from clinicbook.domains.scheduling.domain.entities.billing import Invoice, PaymentRequest
from clinicbook.domains.scheduling.domain.value_objects.time_range import TreatmentLineItem
from clinicbook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    InvoiceItemModel,
    InvoiceModel,
    PaymentRequestModel,
)

from .base import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class SQLAlchemyBillingRepository(SQLAlchemyRepository, IBillingRepository):
    """
    SQLAlchemy implementation of billing repository.

    An invoice and its line items are written in one commit.
    """

    # Invoices

    async def add_invoice(self, invoice: Invoice) -> Invoice:
        invoice.id = invoice.id or generate_uuid_str()
        self.session.add(
            InvoiceModel(
                id=invoice.id,
                appointment_id=invoice.appointment_id,
                patient_id=invoice.patient_id,
                provider_id=invoice.provider_id,
                total_cents=invoice.total_cents,
                currency=invoice.currency,
                status=invoice.status,
                issued_at=invoice.issued_at,
                items=[
                    InvoiceItemModel(
                        position=position,
                        name=item.name,
                        tooth_ref=item.tooth_ref,
                        price_cents=item.price_cents,
                    )
                    for position, item in enumerate(invoice.line_items)
                ],
            )
        )
        await self._commit()
        logger.info(f"Invoice {invoice.id} for appointment {invoice.appointment_id}: {invoice.total_cents} cents")
        return invoice

    async def find_invoices_by_appointment(self, appointment_id: str) -> list[Invoice]:
        result = await self.session.execute(
            select(InvoiceModel).where(InvoiceModel.appointment_id == appointment_id)
        )
        return [self._invoice_to_entity(m) for m in result.scalars().all()]

    async def delete_invoice(self, invoice_id: str) -> bool:
        await self.session.execute(delete(InvoiceItemModel).where(InvoiceItemModel.invoice_id == invoice_id))
        result = await self.session.execute(delete(InvoiceModel).where(InvoiceModel.id == invoice_id))
        await self._commit()
        return result.rowcount > 0

    # Payment requests

    async def add_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest:
        payment_request.id = payment_request.id or generate_uuid_str()
        self.session.add(PaymentRequestModel(id=payment_request.id, **self._payment_values(payment_request)))
        await self._commit()
        logger.info(
            f"Payment request {payment_request.id} for appointment {payment_request.appointment_id}: "
            f"{payment_request.amount_cents} cents"
        )
        return payment_request

    async def find_payment_request(self, payment_request_id: str) -> PaymentRequest | None:
        result = await self.session.execute(
            select(PaymentRequestModel).where(PaymentRequestModel.id == payment_request_id)
        )
        model = result.scalar_one_or_none()
        return self._payment_to_entity(model) if model else None

    async def find_payment_requests_by_appointment(self, appointment_id: str) -> list[PaymentRequest]:
        result = await self.session.execute(
            select(PaymentRequestModel).where(PaymentRequestModel.appointment_id == appointment_id)
        )
        return [self._payment_to_entity(m) for m in result.scalars().all()]

    async def save_payment_request(self, payment_request: PaymentRequest) -> PaymentRequest:
        result = await self.session.execute(
            select(PaymentRequestModel).where(PaymentRequestModel.id == payment_request.id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return await self.add_payment_request(payment_request)
        for key, value in self._payment_values(payment_request).items():
            setattr(model, key, value)
        await self._commit()
        return payment_request

    async def delete_payment_request(self, payment_request_id: str) -> bool:
        result = await self.session.execute(
            delete(PaymentRequestModel).where(PaymentRequestModel.id == payment_request_id)
        )
        await self._commit()
        return result.rowcount > 0

    # Mapping

    @staticmethod
    def _payment_values(payment_request: PaymentRequest) -> dict:
        return {
            "appointment_id": payment_request.appointment_id,
            "patient_id": payment_request.patient_id,
            "provider_id": payment_request.provider_id,
            "amount_cents": payment_request.amount_cents,
            "currency": payment_request.currency,
            "status": payment_request.status,
            "recipient_contact": payment_request.recipient_contact,
            "description": payment_request.description,
            "sent_count": payment_request.sent_count,
            "last_sent_at": payment_request.last_sent_at,
            "paid_at": payment_request.paid_at,
        }

    @staticmethod
    def _payment_to_entity(model: PaymentRequestModel) -> PaymentRequest:
        return PaymentRequest(
            id=model.id,
            appointment_id=model.appointment_id,
            patient_id=model.patient_id,
            provider_id=model.provider_id,
            amount_cents=model.amount_cents,
            currency=model.currency,
            status=model.status,
            recipient_contact=model.recipient_contact,
            description=model.description or "",
            sent_count=model.sent_count,
            last_sent_at=model.last_sent_at,
            paid_at=model.paid_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _invoice_to_entity(model: InvoiceModel) -> Invoice:
        return Invoice(
            id=model.id,
            appointment_id=model.appointment_id,
            patient_id=model.patient_id,
            provider_id=model.provider_id,
            total_cents=model.total_cents,
            currency=model.currency,
            status=model.status,
            issued_at=model.issued_at,
            line_items=[
                TreatmentLineItem(name=i.name, price_cents=i.price_cents, tooth_ref=i.tooth_ref) for i in model.items
            ],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
