"""Domain errors for the verification pipeline.

Phase execution never raises these; phase failures are recorded on the
record. These cover synchronous, caller-facing failures only.
"""


class VerificationError(Exception):
    """Base class for verification domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SubmissionValidationError(VerificationError):
    """A submission or admin action is missing required input."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class NotAuthenticatedError(VerificationError):
    """The caller could not be identified."""


class NotAuthorizedError(VerificationError):
    """The caller lacks the role required for the operation."""


class VerificationNotFoundError(VerificationError):
    """No verification record exists for the given id."""


class InvalidTransitionError(VerificationError):
    """The requested transition is not allowed from the current state."""


class MalformedOcgEmailError(VerificationError):
    """An OCG notification is missing its required sections."""


class PartialUpdateError(VerificationError):
    """The record was written but a dependent write failed.

    The record write is not rolled back; the operation is safe to retry.
    """
