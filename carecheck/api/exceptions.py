"""API exception hierarchy for consistent error handling.

All API exceptions inherit from CarecheckAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses. Domain errors from
``carecheck.verification.errors`` are translated with ``to_api_error``.
"""

from carecheck.api.models.errors import ErrorCode
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


class CarecheckAPIError(Exception):
    """Base exception for all API errors.

    Subclasses set status_code and error_code to define the HTTP response.
    """

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        self.message = message
        self.fields = fields or []
        super().__init__(message)


class ValidationFailedError(CarecheckAPIError):
    """Raised when a submission is missing or has invalid fields."""

    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR


class AuthenticationFailedError(CarecheckAPIError):
    """Raised when credentials are missing or invalid."""

    status_code = 401
    error_code = ErrorCode.NOT_AUTHENTICATED


class ForbiddenError(CarecheckAPIError):
    """Raised when the caller lacks the required role."""

    status_code = 403
    error_code = ErrorCode.NOT_AUTHORIZED


class RecordNotFoundError(CarecheckAPIError):
    """Raised when a verification record doesn't exist."""

    status_code = 404
    error_code = ErrorCode.NOT_FOUND


class TransitionConflictError(CarecheckAPIError):
    """Raised when a change isn't allowed from the current state."""

    status_code = 409
    error_code = ErrorCode.INVALID_TRANSITION


class MalformedInputError(CarecheckAPIError):
    """Raised when an authoritative OCG email can't be parsed."""

    status_code = 422
    error_code = ErrorCode.MALFORMED_AUTHORITATIVE_INPUT


class PartialUpdateAPIError(CarecheckAPIError):
    """Raised when a dependent write failed after the record was written."""

    status_code = 503
    error_code = ErrorCode.PARTIAL_UPDATE


_DOMAIN_ERRORS: dict[type[VerificationError], type[CarecheckAPIError]] = {
    SubmissionValidationError: ValidationFailedError,
    NotAuthenticatedError: AuthenticationFailedError,
    NotAuthorizedError: ForbiddenError,
    VerificationNotFoundError: RecordNotFoundError,
    InvalidTransitionError: TransitionConflictError,
    MalformedOcgEmailError: MalformedInputError,
    PartialUpdateError: PartialUpdateAPIError,
}


def to_api_error(exc: VerificationError) -> CarecheckAPIError:
    """Translate a domain error into its API error."""
    api_error = _DOMAIN_ERRORS.get(type(exc), CarecheckAPIError)
    fields = exc.fields if isinstance(exc, SubmissionValidationError) else None
    return api_error(exc.message, fields=fields)
