"""Enums for the verification domain."""

from enum import Enum, IntEnum


class IdentityStatus(str, Enum):
    """Status of the identity document section."""

    NOT_STARTED = "not_started"
    PENDING = "pending"
    PROCESSING = "processing"
    VERIFIED = "verified"
    REVIEW = "review"
    REJECTED = "rejected"
    FAILED = "failed"


class WwccStatus(str, Enum):
    """Status of the Working With Children Check section.

    CLEARED is written only when the OCG confirms the clearance by email.
    BARRED is terminal.
    """

    NOT_STARTED = "not_started"
    PENDING = "pending"
    PROCESSING = "processing"
    DOC_VERIFIED = "doc_verified"
    REVIEW = "review"
    REJECTED = "rejected"
    FAILED = "failed"
    EXPIRED = "expired"
    OCG_NOT_FOUND = "ocg_not_found"
    CLOSED = "closed"
    APPLICATION_PENDING = "application_pending"
    BARRED = "barred"
    CLEARED = "cleared"


class CrossCheckStatus(str, Enum):
    """Status of the identity-vs-WWCC comparison."""

    NOT_STARTED = "not_started"
    PENDING = "pending"
    PROCESSING = "processing"
    PASSED = "passed"
    REVIEW = "review"


class WwccMethod(str, Enum):
    """How the candidate evidenced their WWCC."""

    GRANT_EMAIL = "grant_email"
    SERVICE_NSW_APP = "service_nsw_app"
    MANUAL_ENTRY = "manual_entry"


class Phase(str, Enum):
    """Independently triggerable pipeline phases."""

    IDENTITY = "identity"
    WWCC = "wwcc"
    CROSS_CHECK = "cross_check"


class Section(str, Enum):
    """Record sections that carry their own status and status timestamp."""

    IDENTITY = "identity"
    WWCC = "wwcc"

    @property
    def status_field(self) -> str:
        return f"{self.value}_status"

    @property
    def status_at_field(self) -> str:
        return f"{self.value}_status_at"


class OverallStatus(IntEnum):
    """Legacy integer verification code reported to clients.

    Always derived from the three section statuses, never stored on its own.
    """

    NOT_STARTED = 0
    PENDING_ID_AUTO = 10
    PENDING_ID_REVIEW = 11
    ID_REJECTED = 12
    ID_FAILED = 13
    PENDING_WWCC_AUTO = 20
    PENDING_WWCC_REVIEW = 21
    WWCC_REJECTED = 22
    WWCC_EXPIRED = 23
    WWCC_DOCUMENT_FAILED = 24
    WWCC_PROCESSING = 25
    WWCC_OCG_NOT_FOUND = 26
    WWCC_CLOSED = 27
    WWCC_APPLICATION_PENDING = 28
    WWCC_BARRED = 29
    PROVISIONALLY_VERIFIED = 30
    FULLY_VERIFIED = 40


class VerificationLevel(IntEnum):
    """Denormalized verification level kept on the candidate profile.

    Progressive levels used for search ranking and badges.
    """

    SIGNED_UP = 0
    REGISTERED = 1
    ID_VERIFIED = 2
    PROVISIONALLY_VERIFIED = 3
    FULLY_VERIFIED = 4


class GuidanceMessage(str, Enum):
    """Candidate-facing guidance attached to a section after a check."""

    TECHNICAL_RETRY = "technical_retry"
    TECHNICAL_STALE = "technical_stale"
    PHOTO_UNCLEAR = "photo_unclear"
    DOCUMENT_EXPIRED = "document_expired"
    DETAILS_MISMATCH = "details_mismatch"
    WWCC_EXPIRED = "wwcc_expired"
    WWCC_DOCUMENT_UNREADABLE = "wwcc_document_unreadable"
    WWCC_DETAILS_MISMATCH = "wwcc_details_mismatch"
    NAME_MISMATCH = "name_mismatch"

    @property
    def text(self) -> str:
        return _GUIDANCE_TEXT[self]


_GUIDANCE_TEXT: dict[GuidanceMessage, str] = {
    GuidanceMessage.TECHNICAL_RETRY: (
        "We couldn't complete the automatic check just now. "
        "Our team will review your documents, or you can resubmit."
    ),
    GuidanceMessage.TECHNICAL_STALE: (
        "The automatic check took longer than expected. "
        "Your documents have been passed to our team for manual review."
    ),
    GuidanceMessage.PHOTO_UNCLEAR: (
        "We couldn't read your passport or selfie clearly. "
        "Please upload sharp, well-lit photos with all four corners visible."
    ),
    GuidanceMessage.DOCUMENT_EXPIRED: (
        "Your passport appears to have expired. Please submit a current passport."
    ),
    GuidanceMessage.DETAILS_MISMATCH: (
        "The details you entered don't match your passport. "
        "Please check your name and date of birth, then resubmit."
    ),
    GuidanceMessage.WWCC_EXPIRED: (
        "Your Working With Children Check has expired or expires within three months. "
        "Please renew it with the Office of the Children's Guardian."
    ),
    GuidanceMessage.WWCC_DOCUMENT_UNREADABLE: (
        "We couldn't verify your WWCC document. "
        "Please upload the original grant email PDF or a clear Service NSW screenshot."
    ),
    GuidanceMessage.WWCC_DETAILS_MISMATCH: (
        "The WWCC number or expiry date doesn't match your document. "
        "Please check the details and resubmit."
    ),
    GuidanceMessage.NAME_MISMATCH: (
        "The name on your WWCC doesn't match your passport. "
        "Our team will review this with you."
    ),
}
