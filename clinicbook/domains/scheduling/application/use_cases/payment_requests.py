"""
Payment Request Use Cases

Resend an outstanding payment request, or record that it was paid.
"""

import logging

from clinicbook.domains.scheduling.application.ports.clinical_port import IBillingRepository
from clinicbook.domains.scheduling.application.ports.notification_port import NotificationReceipt
from clinicbook.domains.scheduling.application.services.patient_notifier import PatientNotifier
from clinicbook.domains.scheduling.domain.entities.billing import PaymentRequest
from clinicbook.domains.scheduling.domain.exceptions import NotFound

logger = logging.getLogger(__name__)


async def _load(repo: IBillingRepository, payment_request_id: str) -> PaymentRequest:
    payment_request = await repo.find_payment_request(payment_request_id)
    if payment_request is None:
        raise NotFound("PaymentRequest", payment_request_id)
    return payment_request


class ResendPaymentRequestUseCase:
    """Use case for sending a pending payment request to the patient again."""

    def __init__(self, billing_repository: IBillingRepository, notifier: PatientNotifier):
        self.billing_repo = billing_repository
        self.notifier = notifier

    async def execute(self, payment_request_id: str) -> tuple[PaymentRequest, NotificationReceipt]:
        """
        Resend a payment request.

        Returns:
            The payment request and the delivery receipt

        Raises:
            NotFound: unknown payment request
            InvalidTransition: the request is no longer pending
        """
        payment_request = await _load(self.billing_repo, payment_request_id)
        payment_request.ensure_sendable()

        receipt = await self.notifier.send_payment_request(payment_request)
        if receipt.success:
            payment_request.record_sent(receipt.recipient)
            payment_request = await self.billing_repo.save_payment_request(payment_request)
            logger.info(f"Payment request {payment_request_id} resent ({payment_request.sent_count} sends)")
        else:
            logger.warning(f"Payment request {payment_request_id} resend failed: {receipt.error}")
        return payment_request, receipt


class MarkPaymentRequestPaidUseCase:
    """Use case for recording a manual payment."""

    def __init__(self, billing_repository: IBillingRepository):
        self.billing_repo = billing_repository

    async def execute(self, payment_request_id: str) -> PaymentRequest:
        payment_request = await _load(self.billing_repo, payment_request_id)
        payment_request.mark_paid()
        saved = await self.billing_repo.save_payment_request(payment_request)
        logger.info(f"Payment request {payment_request_id} marked paid")
        return saved
