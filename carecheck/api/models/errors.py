"""Error response models for consistent API error handling."""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Request or submission is missing or has invalid fields."""

    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    """Missing, invalid or expired credentials."""

    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    """The caller lacks the required role."""

    NOT_FOUND = "NOT_FOUND"
    """The verification record does not exist."""

    INVALID_TRANSITION = "INVALID_TRANSITION"
    """The requested change is not allowed from the record's current state."""

    MALFORMED_AUTHORITATIVE_INPUT = "MALFORMED_AUTHORITATIVE_INPUT"
    """An OCG email could not be parsed."""

    PARTIAL_UPDATE = "PARTIAL_UPDATE"
    """The record was written but a dependent write failed; safe to retry."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ErrorDetail(BaseModel):
    """Field-level error information."""

    field: str | None = None
    """The field that caused the error, if applicable."""

    message: str
    """Human-readable error description."""


class ErrorBody(BaseModel):
    """Error body content for API error responses."""

    code: ErrorCode
    """Machine-readable error code."""

    message: str
    """Human-readable error message."""

    details: list[ErrorDetail] | None = None
    """Additional error details for validation failures."""


class ErrorResponse(BaseModel):
    """Standard error response format for all API errors.

    Example:
        {
            "error": {
                "code": "INVALID_TRANSITION",
                "message": "WWCC is barred"
            }
        }
    """

    error: ErrorBody
