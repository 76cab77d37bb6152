"""API request and response models."""

from carecheck.api.models.errors import ErrorBody, ErrorCode, ErrorDetail, ErrorResponse
from carecheck.api.models.verification import (
    OcgWebhookRequest,
    RejectRequest,
    RunPhaseRequest,
    VerificationSummary,
)

__all__ = [
    "ErrorBody",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "OcgWebhookRequest",
    "RejectRequest",
    "RunPhaseRequest",
    "VerificationSummary",
]
