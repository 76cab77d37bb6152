"""Credential verification pipeline.

Identity and WWCC evidence are checked by independent phases, compared by a
cross-check, and confirmed by OCG emails. The overall status code is always
derived from the section statuses.

Services (PipelineOrchestrator, AdminOverrideHandler, StalenessMonitor,
SubmissionService, OcgIngestionService) live in their own modules and are
assembled by carecheck.api.dependencies.
"""

from carecheck.verification.enums import (
    CrossCheckStatus,
    GuidanceMessage,
    IdentityStatus,
    OverallStatus,
    Phase,
    Section,
    VerificationLevel,
    WwccMethod,
    WwccStatus,
)
from carecheck.verification.errors import (
    InvalidTransitionError,
    MalformedOcgEmailError,
    NotAuthenticatedError,
    NotAuthorizedError,
    PartialUpdateError,
    SubmissionValidationError,
    VerificationError,
    VerificationNotFoundError,
)
from carecheck.verification.events import EventRouter, PhaseEvent, PhaseEventType
from carecheck.verification.models import (
    Actor,
    PhaseOutcome,
    StatusReport,
    VerificationRecord,
)
from carecheck.verification.status import derive_overall_status, status_label
from carecheck.verification.store import VerificationStore

__all__ = [
    "Actor",
    "CrossCheckStatus",
    "EventRouter",
    "GuidanceMessage",
    "IdentityStatus",
    "InvalidTransitionError",
    "MalformedOcgEmailError",
    "NotAuthenticatedError",
    "NotAuthorizedError",
    "OverallStatus",
    "PartialUpdateError",
    "Phase",
    "PhaseEvent",
    "PhaseEventType",
    "PhaseOutcome",
    "Section",
    "StatusReport",
    "SubmissionValidationError",
    "VerificationError",
    "VerificationLevel",
    "VerificationNotFoundError",
    "VerificationRecord",
    "VerificationStore",
    "WwccMethod",
    "WwccStatus",
    "derive_overall_status",
    "status_label",
]
