"""Candidate submissions of identity and WWCC evidence.

Submissions are validated before anything is written. An accepted
submission bumps the generation of the section it replaces, so a phase still
running on that section's previous evidence discards its result. Phases on
the other section are unaffected.
"""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from carecheck.candidates.store import CandidateProfileStore
from carecheck.extraction.manual import WWCC_NUMBER_PATTERN, normalize_wwcc_number
from carecheck.observability.logging import get_logger
from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    VerificationLevel,
    WwccMethod,
    WwccStatus,
)
from carecheck.verification.errors import (
    InvalidTransitionError,
    SubmissionValidationError,
    VerificationNotFoundError,
)
from carecheck.verification.models import VerificationRecord
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)


class IdentitySubmission(BaseModel):
    """Identity details and document references from the candidate."""

    surname: str | None = None
    given_names: str | None = None
    date_of_birth: date | None = None
    passport_country: str | None = None
    passport_upload_ref: str | None = Field(default=None, description="Stored passport photo")
    selfie_upload_ref: str | None = Field(default=None, description="Stored selfie")


class WwccSubmission(BaseModel):
    """WWCC evidence from the candidate."""

    method: WwccMethod | None = None
    wwcc_number: str | None = None
    expiry_date: date | None = None
    grant_email_ref: str | None = Field(default=None, description="Stored grant email PDF")
    screenshot_ref: str | None = Field(default=None, description="Stored Service NSW screenshot")


_IDENTITY_REQUIRED = (
    "surname",
    "given_names",
    "date_of_birth",
    "passport_country",
    "passport_upload_ref",
    "selfie_upload_ref",
)

_CLEARED_IDENTITY: dict[str, Any] = {
    "identity_extracted": None,
    "identity_issues": [],
    "identity_rejection_reason": None,
    "identity_user_guidance": None,
}

_CLEARED_WWCC: dict[str, Any] = {
    "wwcc_extracted": None,
    "wwcc_issues": [],
    "wwcc_rejection_reason": None,
    "wwcc_user_guidance": None,
    "ocg_result_status": None,
    "ocg_result_text": None,
    "ocg_verified_at": None,
}

_RESET_CROSS_CHECK: dict[str, Any] = {
    "cross_check_status": CrossCheckStatus.NOT_STARTED,
    "cross_check_issues": [],
    "cross_check_reasoning": None,
    "follow_up_pending": False,
    "follow_up_error": None,
}


class SubmissionService:
    """Accepts candidate submissions and puts sections into ``pending``."""

    def __init__(self, store: VerificationStore, profiles: CandidateProfileStore) -> None:
        self._store = store
        self._profiles = profiles

    async def submit_identity(
        self, candidate_id: UUID, submission: IdentitySubmission
    ) -> VerificationRecord:
        """Submit identity details for the automated check.

        Raises:
            SubmissionValidationError: If a required field is missing
            InvalidTransitionError: If the WWCC is barred
        """
        _require_identity_fields(submission)
        existing = await self._store.get_by_candidate(candidate_id)
        if existing is not None and existing.wwcc_status == WwccStatus.BARRED:
            raise InvalidTransitionError("WWCC is barred; verification cannot restart")

        record = await self._store.upsert(
            candidate_id,
            {
                **_identity_fields(submission),
                **_CLEARED_IDENTITY,
                **_RESET_CROSS_CHECK,
                "identity_status": IdentityStatus.PENDING,
                "identity_generation": _next(existing, "identity_generation"),
            },
        )
        await self._profiles.set_verification_level(candidate_id, VerificationLevel.REGISTERED)
        logger.info(
            "identity_submitted",
            verification_id=str(record.id),
            candidate_id=str(candidate_id),
            identity_generation=record.identity_generation,
            resubmission=existing is not None,
        )
        return record

    async def submit_identity_for_manual_review(
        self, candidate_id: UUID, submission: IdentitySubmission
    ) -> VerificationRecord:
        """Submit identity details straight to manual review.

        WWCC data is wiped: the candidate starts the WWCC step again after
        the review.
        """
        _require_identity_fields(submission)
        existing = await self._store.get_by_candidate(candidate_id)
        if existing is not None and existing.wwcc_status == WwccStatus.BARRED:
            raise InvalidTransitionError("WWCC is barred; verification cannot restart")

        record = await self._store.upsert(
            candidate_id,
            {
                **_identity_fields(submission),
                **_CLEARED_IDENTITY,
                **_CLEARED_WWCC,
                **_RESET_CROSS_CHECK,
                "identity_status": IdentityStatus.REVIEW,
                "wwcc_status": WwccStatus.NOT_STARTED,
                "wwcc_method": None,
                "wwcc_number": None,
                "wwcc_expiry": None,
                "wwcc_grant_email_ref": None,
                "wwcc_screenshot_ref": None,
                "identity_generation": _next(existing, "identity_generation"),
                "wwcc_generation": _next(existing, "wwcc_generation"),
            },
        )
        await self._profiles.set_verification_level(candidate_id, VerificationLevel.REGISTERED)
        logger.info(
            "identity_submitted_for_review",
            verification_id=str(record.id),
            candidate_id=str(candidate_id),
            identity_generation=record.identity_generation,
        )
        return record

    async def submit_wwcc(
        self, candidate_id: UUID, submission: WwccSubmission
    ) -> VerificationRecord:
        """Submit WWCC evidence for the automated document check.

        Raises:
            SubmissionValidationError: If the method or its evidence is missing
            VerificationNotFoundError: If identity has not been submitted
            InvalidTransitionError: If the WWCC is barred
        """
        fields = _wwcc_fields(submission)
        existing = await self._store.get_by_candidate(candidate_id)
        if existing is None:
            raise VerificationNotFoundError("Submit identity details before the WWCC")
        if existing.wwcc_status == WwccStatus.BARRED:
            raise InvalidTransitionError("WWCC is barred; resubmission is not allowed")

        record = await self._store.conditional_update(
            existing.id,
            existing.guard("wwcc_status"),
            {
                **fields,
                **_CLEARED_WWCC,
                **_RESET_CROSS_CHECK,
                "wwcc_status": WwccStatus.PENDING,
                "wwcc_generation": existing.wwcc_generation + 1,
            },
        )
        if record is None:
            raise InvalidTransitionError("Verification changed during submission, please retry")

        logger.info(
            "wwcc_submitted",
            verification_id=str(record.id),
            candidate_id=str(candidate_id),
            method=submission.method.value,
            wwcc_generation=record.wwcc_generation,
        )
        return record


def _next(existing: VerificationRecord | None, counter: str) -> int:
    return getattr(existing, counter) + 1 if existing else 1


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require_identity_fields(submission: IdentitySubmission) -> None:
    missing = [name for name in _IDENTITY_REQUIRED if _is_blank(getattr(submission, name))]
    if missing:
        raise SubmissionValidationError(
            f"Missing required fields: {', '.join(missing)}", fields=missing
        )


def _identity_fields(submission: IdentitySubmission) -> dict[str, Any]:
    return {
        "surname": submission.surname.strip(),
        "given_names": submission.given_names.strip(),
        "date_of_birth": submission.date_of_birth,
        "passport_country": submission.passport_country.strip(),
        "passport_upload_ref": submission.passport_upload_ref,
        "selfie_upload_ref": submission.selfie_upload_ref,
    }


def _wwcc_fields(submission: WwccSubmission) -> dict[str, Any]:
    number = normalize_wwcc_number(submission.wwcc_number) if submission.wwcc_number else None
    fields: dict[str, Any] = {
        "wwcc_method": submission.method,
        "wwcc_number": number,
        "wwcc_expiry": submission.expiry_date,
        "wwcc_grant_email_ref": None,
        "wwcc_screenshot_ref": None,
    }

    match submission.method:
        case None:
            raise SubmissionValidationError("WWCC method is required", fields=["method"])
        case WwccMethod.GRANT_EMAIL:
            if not submission.grant_email_ref:
                raise SubmissionValidationError(
                    "Grant email upload is required", fields=["grant_email_ref"]
                )
            fields["wwcc_grant_email_ref"] = submission.grant_email_ref
        case WwccMethod.SERVICE_NSW_APP:
            if not submission.screenshot_ref:
                raise SubmissionValidationError(
                    "Service NSW screenshot is required", fields=["screenshot_ref"]
                )
            fields["wwcc_screenshot_ref"] = submission.screenshot_ref
        case WwccMethod.MANUAL_ENTRY:
            missing = []
            if not number:
                missing.append("wwcc_number")
            if submission.expiry_date is None:
                missing.append("expiry_date")
            if missing:
                raise SubmissionValidationError(
                    f"Missing required fields: {', '.join(missing)}", fields=missing
                )

    if number and not WWCC_NUMBER_PATTERN.match(number):
        raise SubmissionValidationError(
            "WWCC number must look like WWC1234567A", fields=["wwcc_number"]
        )
    return fields
