"""Candidate notifications for verification failures."""

from carecheck.notifications.failure_notifier import FailureNotifier, NotificationRunResult
from carecheck.notifications.models import (
    EmailLog,
    EmailMessage,
    EmailStatus,
    NotificationType,
)
from carecheck.notifications.sender import (
    EmailSender,
    InMemoryEmailSender,
    LoggingEmailSender,
)
from carecheck.notifications.store import EmailLogStore
from carecheck.notifications.stores import InMemoryEmailLogStore

__all__ = [
    "EmailLog",
    "EmailLogStore",
    "EmailMessage",
    "EmailSender",
    "EmailStatus",
    "FailureNotifier",
    "InMemoryEmailLogStore",
    "InMemoryEmailSender",
    "LoggingEmailSender",
    "NotificationRunResult",
    "NotificationType",
]
