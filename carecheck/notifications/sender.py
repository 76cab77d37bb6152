"""Email senders.

Delivery providers are outside this service; a production deployment plugs
its provider in behind EmailSender.
"""

from abc import ABC, abstractmethod
from uuid import uuid4

from carecheck.notifications.models import EmailMessage
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)


class EmailSender(ABC):
    """Sends a rendered email."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """Send a message.

        Returns:
            Provider message id

        Raises:
            Exception: Any delivery failure
        """
        pass


class LoggingEmailSender(EmailSender):
    """Logs messages instead of delivering them. For development."""

    async def send(self, message: EmailMessage) -> str:
        message_id = f"log-{uuid4()}"
        logger.info(
            "email_logged",
            message_id=message_id,
            recipient_email=message.to,
            subject=message.subject,
            tags=message.tags,
        )
        return message_id


class InMemoryEmailSender(EmailSender):
    """Collects sent messages for test assertions."""

    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[EmailMessage] = []
        self.error = error

    async def send(self, message: EmailMessage) -> str:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return f"mem-{len(self.sent)}"
