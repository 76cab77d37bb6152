"""Request and response models for verification endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from carecheck.verification.enums import (
    CrossCheckStatus,
    IdentityStatus,
    OverallStatus,
    Phase,
    WwccStatus,
)
from carecheck.verification.models import VerificationRecord
from carecheck.verification.status import status_label


class RunPhaseRequest(BaseModel):
    """Request body for POST /verification/run."""

    phase: Phase = Field(..., description="Phase to run")


class RejectRequest(BaseModel):
    """Request body for admin rejections."""

    reason: str | None = Field(default=None, description="Shown to the candidate")


class OcgWebhookRequest(BaseModel):
    """JSON body for POST /webhooks/ocg."""

    html: str | None = Field(default=None, description="Raw OCG notification HTML")


class VerificationSummary(BaseModel):
    """Record summary returned by submissions and admin actions."""

    verification_id: UUID
    candidate_id: UUID
    verification_status: OverallStatus
    label: str
    identity_status: IdentityStatus
    wwcc_status: WwccStatus
    cross_check_status: CrossCheckStatus
    identity_generation: int
    wwcc_generation: int
    follow_up_pending: bool = False
    updated_at: datetime

    @classmethod
    def from_record(cls, record: VerificationRecord) -> "VerificationSummary":
        return cls(
            verification_id=record.id,
            candidate_id=record.candidate_id,
            verification_status=record.verification_status,
            label=status_label(record.verification_status),
            identity_status=record.identity_status,
            wwcc_status=record.wwcc_status,
            cross_check_status=record.cross_check_status,
            identity_generation=record.identity_generation,
            wwcc_generation=record.wwcc_generation,
            follow_up_pending=record.follow_up_pending,
            updated_at=record.updated_at,
        )
