"""In-memory implementation of EmailLogStore."""

from datetime import datetime
from uuid import UUID

from carecheck.notifications.models import EmailLog, EmailStatus, NotificationType
from carecheck.notifications.store import EmailLogStore


class InMemoryEmailLogStore(EmailLogStore):
    """In-memory implementation of EmailLogStore for testing and development."""

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._logs: list[EmailLog] = []

    async def add(self, log: EmailLog) -> None:
        """Record an attempt."""
        self._logs.append(log)

    async def has_sent_since(
        self,
        candidate_id: UUID,
        notification_type: NotificationType,
        since: datetime,
    ) -> bool:
        """Whether a sent notification of this type exists at or after since."""
        return any(
            log.candidate_id == candidate_id
            and log.notification_type == notification_type
            and log.status == EmailStatus.SENT
            and log.created_at >= since
            for log in self._logs
        )

    async def list_for_candidate(self, candidate_id: UUID) -> list[EmailLog]:
        """All attempts for a candidate, oldest first."""
        return sorted(
            (log for log in self._logs if log.candidate_id == candidate_id),
            key=lambda log: log.created_at,
        )
