"""
Email Notification Gateway

Delivers patient messages through an HTTP email API.
"""

import logging
from itertools import count
from typing import Any

import httpx

from clinicbook.config.settings import get_settings
from clinicbook.domains.scheduling.application.ports.notification_port import (
    INotificationGateway,
    NotificationKind,
    NotificationReceipt,
)
from clinicbook.domains.scheduling.domain.entities.patient_contact import PatientContact

logger = logging.getLogger(__name__)


class EmailNotificationGateway(INotificationGateway):
    """
    Sends notifications as JSON POSTs to an email provider API.

    Failures are reported in the receipt; send() never raises.
    """

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        from_address: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.api_url = api_url or settings.EMAIL_API_URL
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self.from_address = from_address or settings.EMAIL_FROM_ADDRESS
        self.timeout = timeout or settings.EMAIL_TIMEOUT
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_payload(self, to: str, subject: str, body: str, kind: NotificationKind) -> dict[str, Any]:
        return {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "text": body,
            "tags": [{"name": "kind", "value": kind.value}],
        }

    async def send(
        self,
        recipient_id: str,
        contact: PatientContact,
        subject: str,
        body: str,
        kind: NotificationKind,
    ) -> NotificationReceipt:
        email = contact.email_address
        if email is None:
            logger.warning(f"No valid email for patient {recipient_id}, skipping {kind.value}")
            return NotificationReceipt.failed("Patient has no valid email address")

        payload = self._build_payload(str(email), subject, body, kind)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=self._get_headers())

            if response.status_code in (200, 201, 202):
                message_id = None
                try:
                    message_id = response.json().get("id")
                except ValueError:
                    pass
                logger.info(f"Sent {kind.value} email to patient {recipient_id} (id={message_id})")
                return NotificationReceipt(success=True, message_id=message_id, recipient=str(email))

            logger.error(f"Email API returned {response.status_code} for {kind.value}: {response.text}")
            return NotificationReceipt(
                success=False,
                error=f"HTTP {response.status_code}: {response.text}",
                recipient=str(email),
            )

        except httpx.TimeoutException:
            error_msg = "Timeout communicating with email API"
            logger.error(error_msg)
            return NotificationReceipt(success=False, error=error_msg, recipient=str(email))
        except httpx.HTTPError as e:
            error_msg = f"Email API connection error: {e}"
            logger.error(error_msg)
            return NotificationReceipt(success=False, error=error_msg, recipient=str(email))


class LoggingNotificationGateway(INotificationGateway):
    """
    Logs that a message would have been sent and drops it.

    Used when no email API is configured. Only the kind, the patient id and
    a running message id are logged; subjects, bodies and addresses are
    neither logged nor kept.
    """

    def __init__(self):
        self._counter = count(1)

    async def send(
        self,
        recipient_id: str,
        contact: PatientContact,
        subject: str,
        body: str,
        kind: NotificationKind,
    ) -> NotificationReceipt:
        email = contact.email_address
        if email is None:
            return NotificationReceipt.failed("Patient has no valid email address")
        message_id = f"log-{next(self._counter)}"
        logger.info(f"Email delivery not configured, dropped {kind.value} {message_id} for patient {recipient_id}")
        return NotificationReceipt(success=True, message_id=message_id, recipient=str(email))


class RecordingNotificationGateway(INotificationGateway):
    """Keeps every sent message in memory for assertions. Test use only: nothing is ever evicted."""

    def __init__(self, fail_kinds: set[NotificationKind] | None = None):
        self.sent: list[dict[str, Any]] = []
        self.fail_kinds = set(fail_kinds or ())

    async def send(
        self,
        recipient_id: str,
        contact: PatientContact,
        subject: str,
        body: str,
        kind: NotificationKind,
    ) -> NotificationReceipt:
        if kind in self.fail_kinds:
            return NotificationReceipt.failed(f"{kind.value} delivery disabled")
        email = contact.email_address
        if email is None:
            return NotificationReceipt.failed("Patient has no valid email address")
        self.sent.append(
            {"recipient_id": recipient_id, "to": str(email), "subject": subject, "body": body, "kind": kind}
        )
        return NotificationReceipt(success=True, message_id=f"rec-{len(self.sent)}", recipient=str(email))

    def sent_of_kind(self, kind: NotificationKind) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["kind"] == kind]
