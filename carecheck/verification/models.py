"""Verification record and related value models."""

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    OverallStatus,
    Section,
    WwccMethod,
    WwccStatus,
)
from carecheck.verification.status import derive_overall_status


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


# Section status field -> the timestamp that moves only when that status moves
_STATUS_TIMESTAMPS: Mapping[str, str] = {
    "identity_status": "identity_status_at",
    "wwcc_status": "wwcc_status_at",
    "cross_check_status": "cross_check_at",
}

# Generations a write to each status must still match. The cross-check compares
# both documents, so either submission invalidates it.
_GUARD_GENERATIONS: Mapping[str, tuple[str, ...]] = {
    "identity_status": ("identity_generation",),
    "wwcc_status": ("wwcc_generation",),
    "cross_check_status": ("identity_generation", "wwcc_generation"),
}


class ExtractedIdentity(BaseModel):
    """Fields read from the passport by the identity extractor."""

    surname: str | None = None
    given_names: str | None = None
    date_of_birth: str | None = None
    nationality: str | None = None
    passport_number: str | None = None
    expiry_date: str | None = None


class ExtractedWwcc(BaseModel):
    """Fields read from the WWCC evidence."""

    surname: str | None = None
    first_name: str | None = None
    other_names: str | None = None
    date_of_birth: str | None = None
    wwcc_number: str | None = None
    clearance_type: str | None = None
    expiry_date: str | None = None


class VerificationRecord(BaseModel):
    """One candidate's verification state.

    Three independent sections (identity, WWCC, cross-check) each carry their
    own status. ``verification_status`` is always derived from them; use
    :meth:`apply` to produce an updated record so the derived code and the
    per-section timestamps stay consistent.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4, description="Verification record id")
    candidate_id: UUID = Field(..., description="Candidate this record belongs to")
    identity_generation: int = Field(
        default=0,
        description="Bumped by every identity submission; identity and cross-check "
        "phases refuse to write results computed for an older value",
    )
    wwcc_generation: int = Field(
        default=0,
        description="Bumped by every WWCC submission or wipe; WWCC and cross-check "
        "phases refuse to write results computed for an older value",
    )

    # Identity section
    surname: str | None = None
    given_names: str | None = None
    date_of_birth: date | None = None
    passport_country: str | None = None
    passport_upload_ref: str | None = None
    selfie_upload_ref: str | None = None
    identity_status: IdentityStatus = IdentityStatus.NOT_STARTED
    identity_status_at: datetime | None = None
    identity_extracted: ExtractedIdentity | None = None
    identity_issues: list[str] = Field(default_factory=list)
    identity_rejection_reason: str | None = None
    identity_user_guidance: str | None = None

    # WWCC section
    wwcc_method: WwccMethod | None = None
    wwcc_number: str | None = None
    wwcc_expiry: date | None = None
    wwcc_grant_email_ref: str | None = None
    wwcc_screenshot_ref: str | None = None
    wwcc_status: WwccStatus = WwccStatus.NOT_STARTED
    wwcc_status_at: datetime | None = None
    wwcc_extracted: ExtractedWwcc | None = None
    wwcc_issues: list[str] = Field(default_factory=list)
    wwcc_rejection_reason: str | None = None
    wwcc_user_guidance: str | None = None
    ocg_result_status: str | None = None
    ocg_result_text: str | None = None
    ocg_verified_at: datetime | None = None

    # Cross-check section
    cross_check_status: CrossCheckStatus = CrossCheckStatus.NOT_STARTED
    cross_check_at: datetime | None = None
    cross_check_issues: list[str] = Field(default_factory=list)
    cross_check_reasoning: str | None = None

    # Set when a scheduled dependent phase could not run
    follow_up_pending: bool = False
    follow_up_error: str | None = None

    verification_status: OverallStatus = OverallStatus.NOT_STARTED
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def apply(self, fields: Mapping[str, Any], now: datetime) -> "VerificationRecord":
        """Return a copy with ``fields`` written at time ``now``.

        Stamps a section's status timestamp only when that section's status
        value changes, bumps ``updated_at`` and recomputes the overall code.

        Raises:
            ValueError: If fields names an unknown attribute or tries to set
                the derived ``verification_status``
        """
        if "verification_status" in fields:
            raise ValueError("verification_status is derived and cannot be written")
        unknown = set(fields) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown verification fields: {sorted(unknown)}")

        data = self.model_dump()
        data.update(fields)
        for status_field, at_field in _STATUS_TIMESTAMPS.items():
            if status_field in fields and at_field not in fields:
                if data[status_field] != getattr(self, status_field):
                    data[at_field] = now
        data["updated_at"] = now

        record = type(self).model_validate(data)
        code = derive_overall_status(
            record.identity_status, record.wwcc_status, record.cross_check_status
        )
        return record.model_copy(update={"verification_status": code})

    def guard(self, status_field: str, status: Any = None) -> dict[str, Any]:
        """Expected values for a conditional write to one section.

        Pins ``status_field`` to ``status`` (default: its current value) and
        every generation the section depends on to its current value. Writes
        to other sections never invalidate the guard.
        """
        expected = {status_field: getattr(self, status_field) if status is None else status}
        for name in _GUARD_GENERATIONS[status_field]:
            expected[name] = getattr(self, name)
        return expected

    def section_status(self, section: Section) -> IdentityStatus | WwccStatus:
        return getattr(self, section.status_field)

    def section_status_at(self, section: Section) -> datetime | None:
        return getattr(self, section.status_at_field)


class PhaseOutcome(BaseModel):
    """Result of running a single phase.

    ``success`` reports whether the phase ran to completion, not whether the
    candidate passed; the record carries the verification outcome.
    """

    verification_id: UUID
    phase: str
    success: bool
    claimed: bool = True
    status: str | None = None
    error: str | None = None


class StatusReport(BaseModel):
    """What a status read returns to the candidate."""

    verification_id: UUID
    candidate_id: UUID
    verification_status: OverallStatus
    label: str
    identity_status: IdentityStatus
    wwcc_status: WwccStatus
    cross_check_status: CrossCheckStatus
    identity_issues: list[str] = Field(default_factory=list)
    wwcc_issues: list[str] = Field(default_factory=list)
    identity_user_guidance: str | None = None
    wwcc_user_guidance: str | None = None
    is_provisionally_verified: bool = False
    is_fully_verified: bool = False
    escalated: list[Section] = Field(default_factory=list)


class Actor(BaseModel):
    """Authenticated caller of an operation."""

    model_config = ConfigDict(frozen=True)

    subject: str = Field(..., description="Token subject, the candidate id for candidates")
    roles: frozenset[str] = Field(default_factory=frozenset)

    def has_any_role(self, *roles: str) -> bool:
        return bool(self.roles.intersection(roles))
