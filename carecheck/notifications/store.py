"""EmailLogStore abstract interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from carecheck.notifications.models import EmailLog, NotificationType


class EmailLogStore(ABC):
    """Abstract interface for the log of notification attempts."""

    @abstractmethod
    async def add(self, log: EmailLog) -> None:
        """Record an attempt."""
        pass

    @abstractmethod
    async def has_sent_since(
        self,
        candidate_id: UUID,
        notification_type: NotificationType,
        since: datetime,
    ) -> bool:
        """Whether a notification of this type was sent at or after ``since``.

        Failed attempts don't count.
        """
        pass

    @abstractmethod
    async def list_for_candidate(self, candidate_id: UUID) -> list[EmailLog]:
        """All attempts for a candidate, oldest first."""
        pass
