"""
Cancellation subscribers: audit log and e-mail notifications.
"""

from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import List

import aiosmtplib

from ..config import AppConfig, Recipient, SmtpConfig
from ..domain.models import CancellationEvent
from ..services.cancellation import Subscriber

logger = logging.getLogger(__name__)

AUDIT_LOGGER_NAME = "dayslot.audit"


class AuditLogSubscriber:
    """Writes one audit line per cancelled reservation."""

    def __init__(self, logger_name: str = AUDIT_LOGGER_NAME):
        self._logger = logging.getLogger(logger_name)

    def __call__(self, event: CancellationEvent) -> None:
        self._logger.info("Reservation cancelled: %s", event.to_payload())


class EmailCancellationNotifier:
    """
    Sends a cancellation e-mail to one recipient.

    SMTP errors are raised to the cancellation hub, which logs them without
    affecting other subscribers.
    """

    def __init__(self, recipient: Recipient, smtp: SmtpConfig, sender: str):
        self.recipient = recipient
        self.smtp = smtp
        self.sender = sender

    def build_message(self, event: CancellationEvent) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = f"Reservation {event.confirmation_code} cancelled"
        message["From"] = self.sender
        message["To"] = self.recipient.email
        message.set_content(
            f"Hello {self.recipient.name},\n\n"
            f"The reservation with confirmation code {event.confirmation_code} "
            "has been cancelled. The date is available for booking again.\n"
        )
        return message

    async def __call__(self, event: CancellationEvent) -> None:
        message = self.build_message(event)
        await aiosmtplib.send(
            message,
            hostname=self.smtp.host,
            port=self.smtp.port,
            username=self.smtp.username,
            password=self.smtp.password,
            use_tls=self.smtp.use_tls,
            start_tls=self.smtp.start_tls,
            timeout=self.smtp.timeout,
        )
        logger.info(
            "Cancellation notice for %s sent to %s",
            event.confirmation_code,
            self.recipient.email,
        )

    def __repr__(self) -> str:
        return f"EmailCancellationNotifier({self.recipient.email!r})"


def build_subscribers(config: AppConfig) -> List[Subscriber]:
    """Subscribers in registration order: audit log first, then recipients."""
    notifications = config.notifications
    subscribers: List[Subscriber] = []

    if notifications.audit_log:
        subscribers.append(AuditLogSubscriber())

    for recipient in notifications.recipients:
        subscribers.append(
            EmailCancellationNotifier(
                recipient=recipient,
                smtp=notifications.smtp,
                sender=notifications.sender,
            )
        )

    return subscribers
