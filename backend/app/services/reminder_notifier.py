"""Notification port used by the reminder dispatcher.

Supports any transport (email today) behind one ``send`` call.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import aiosmtplib

from app.services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one delivery attempt."""

    ok: bool
    error: str | None = None


class ReminderNotifier(ABC):
    """Abstract base class for reminder transports."""

    @property
    @abstractmethod
    def channel(self) -> str:
        """Return the transport name (e.g. "email")."""
        pass  # pragma: no cover

    @abstractmethod
    async def send(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        """Deliver a rendered reminder.

        Delivery problems are reported through ``DeliveryResult.ok`` rather
        than raised.
        """
        pass  # pragma: no cover


class EmailReminderNotifier(ReminderNotifier):
    """Sends reminders as HTML email through EmailService."""

    def __init__(self, email_service: EmailService | None = None):
        self.email_service = email_service or EmailService()

    @property
    def channel(self) -> str:
        return "email"

    async def send(self, recipient: str, subject: str, body: str) -> DeliveryResult:
        try:
            sent = await self.email_service.send_email(
                to=recipient, subject=subject, html_body=body,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning("Email delivery to %s failed: %s", recipient, e)
            return DeliveryResult(ok=False, error=str(e) or e.__class__.__name__)
        if not sent:
            return DeliveryResult(ok=False, error="Email was not sent")
        return DeliveryResult(ok=True)


def get_reminder_notifier() -> ReminderNotifier:
    """FastAPI dependency returning the configured reminder transport."""
    return EmailReminderNotifier()
