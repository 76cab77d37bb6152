"""Notification domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from carecheck.verification.enums import Section
from carecheck.verification.models import utc_now


class NotificationType(str, Enum):
    """Candidate emails sent by the verification pipeline."""

    IDENTITY_CHECK_FAILED = "identity_check_failed"
    WWCC_CHECK_FAILED = "wwcc_check_failed"

    @property
    def section(self) -> Section:
        return _SECTIONS[self]

    @property
    def template_code(self) -> str:
        """Reference code of the email copy, e.g. VER-002."""
        return _TEMPLATE_CODES[self]

    @classmethod
    def for_section(cls, section: Section) -> "NotificationType":
        return next(t for t in cls if t.section is section)


_SECTIONS: dict[NotificationType, Section] = {
    NotificationType.IDENTITY_CHECK_FAILED: Section.IDENTITY,
    NotificationType.WWCC_CHECK_FAILED: Section.WWCC,
}

_TEMPLATE_CODES: dict[NotificationType, str] = {
    NotificationType.IDENTITY_CHECK_FAILED: "VER-002",
    NotificationType.WWCC_CHECK_FAILED: "VER-003",
}


class EmailStatus(str, Enum):
    """Delivery outcome of an email attempt."""

    SENT = "sent"
    FAILED = "failed"


class EmailMessage(BaseModel):
    """A rendered email ready to hand to a sender."""

    to: str
    subject: str
    html: str
    from_address: str
    tags: dict[str, str] = Field(default_factory=dict)


class EmailLog(BaseModel):
    """One attempt to send a notification."""

    id: UUID = Field(default_factory=uuid4)
    candidate_id: UUID
    verification_id: UUID
    notification_type: NotificationType
    status: EmailStatus
    message_id: str | None = Field(default=None, description="Provider message id")
    error: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
