"""Candidate verification endpoints."""

from fastapi import APIRouter

from carecheck.api.dependencies import (
    OrchestratorDep,
    StalenessMonitorDep,
    SubmissionServiceDep,
    VerificationStoreDep,
)
from carecheck.api.middleware.auth import CandidateIdDep
from carecheck.api.models.verification import RunPhaseRequest, VerificationSummary
from carecheck.observability.logging import get_logger
from carecheck.verification.errors import VerificationNotFoundError
from carecheck.verification.models import PhaseOutcome, StatusReport
from carecheck.verification.submissions import IdentitySubmission, WwccSubmission

logger = get_logger(__name__)

router = APIRouter(prefix="/verification")


@router.post("/identity", response_model=VerificationSummary)
async def submit_identity(
    request: IdentitySubmission,
    candidate_id: CandidateIdDep,
    submissions: SubmissionServiceDep,
) -> VerificationSummary:
    """Submit identity details and documents for the automated check."""
    logger.debug("submit_identity_request", candidate_id=str(candidate_id))
    record = await submissions.submit_identity(candidate_id, request)
    return VerificationSummary.from_record(record)


@router.post("/identity/manual-review", response_model=VerificationSummary)
async def submit_identity_for_manual_review(
    request: IdentitySubmission,
    candidate_id: CandidateIdDep,
    submissions: SubmissionServiceDep,
) -> VerificationSummary:
    """Submit identity straight to admin review, skipping the automated check."""
    logger.debug("submit_identity_manual_review_request", candidate_id=str(candidate_id))
    record = await submissions.submit_identity_for_manual_review(candidate_id, request)
    return VerificationSummary.from_record(record)


@router.post("/wwcc", response_model=VerificationSummary)
async def submit_wwcc(
    request: WwccSubmission,
    candidate_id: CandidateIdDep,
    submissions: SubmissionServiceDep,
) -> VerificationSummary:
    """Submit WWCC evidence for the automated check."""
    logger.debug(
        "submit_wwcc_request",
        candidate_id=str(candidate_id),
        method=request.method.value if request.method else None,
    )
    record = await submissions.submit_wwcc(candidate_id, request)
    return VerificationSummary.from_record(record)


@router.post("/run", response_model=PhaseOutcome)
async def run_phase(
    request: RunPhaseRequest,
    candidate_id: CandidateIdDep,
    store: VerificationStoreDep,
    orchestrator: OrchestratorDep,
) -> PhaseOutcome:
    """Run one phase on the caller's record.

    The response is 200 whenever the phase was attempted; ``success`` and
    ``error`` describe how the phase itself went.
    """
    record = await store.get_by_candidate(candidate_id)
    if record is None:
        raise VerificationNotFoundError(f"No verification record for candidate {candidate_id}")

    logger.info(
        "run_phase_request",
        verification_id=str(record.id),
        phase=request.phase.value,
    )
    return await orchestrator.trigger_phase(record.id, request.phase)


@router.get("/status", response_model=StatusReport)
async def get_status(
    candidate_id: CandidateIdDep,
    monitor: StalenessMonitorDep,
) -> StatusReport:
    """Current verification status, escalating stale automated checks."""
    return await monitor.read_status(candidate_id)
