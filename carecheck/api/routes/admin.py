"""Admin override endpoints."""

from uuid import UUID

from fastapi import APIRouter

from carecheck.api.dependencies import AdminHandlerDep
from carecheck.api.middleware.auth import AdminDep
from carecheck.api.models.verification import RejectRequest, VerificationSummary
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/verifications")


@router.post("/{verification_id}/identity/verify", response_model=VerificationSummary)
async def verify_identity(
    verification_id: UUID,
    actor: AdminDep,
    handler: AdminHandlerDep,
) -> VerificationSummary:
    """Mark identity verified after manual review."""
    record = await handler.verify_identity(verification_id, actor)
    return VerificationSummary.from_record(record)


@router.post("/{verification_id}/identity/reject", response_model=VerificationSummary)
async def reject_identity(
    verification_id: UUID,
    request: RejectRequest,
    actor: AdminDep,
    handler: AdminHandlerDep,
) -> VerificationSummary:
    """Reject identity with a reason shown to the candidate."""
    record = await handler.reject_identity(verification_id, request.reason, actor)
    return VerificationSummary.from_record(record)


@router.post("/{verification_id}/wwcc/confirm", response_model=VerificationSummary)
async def confirm_wwcc(
    verification_id: UUID,
    actor: AdminDep,
    handler: AdminHandlerDep,
) -> VerificationSummary:
    """Confirm the WWCC document after manual review.

    Confirmation sets ``doc_verified``; only an OCG clearance reaches fully
    verified.
    """
    record = await handler.confirm_wwcc(verification_id, actor)
    return VerificationSummary.from_record(record)


@router.post("/{verification_id}/wwcc/reject", response_model=VerificationSummary)
async def reject_wwcc(
    verification_id: UUID,
    request: RejectRequest,
    actor: AdminDep,
    handler: AdminHandlerDep,
) -> VerificationSummary:
    """Reject the WWCC with a reason shown to the candidate."""
    record = await handler.reject_wwcc(verification_id, request.reason, actor)
    return VerificationSummary.from_record(record)
