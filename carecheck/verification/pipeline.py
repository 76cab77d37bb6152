"""Pipeline orchestrator: identity, WWCC-document and cross-check phases.

Each phase follows the same shape:

1. Claim the section by moving it from ``pending`` to ``processing`` with a
   conditional update. A failed claim means another invocation owns the
   work (or there is nothing to do) and the phase is a no-op.
2. Evaluate the documents. Extractor failures become a ``review`` status,
   never an exception.
3. Write the verdict conditionally on ``processing`` plus the section
   generations captured by the claim. If the candidate resubmitted that
   section meanwhile the result is discarded; a submission to the other
   document section does not disturb it.
4. Emit events so dependent phases can be scheduled.

Phases never raise past their boundary; the outcome is recorded on the
verification record and summarised in the returned PhaseOutcome.
"""

import asyncio
import time
from collections.abc import Callable, Mapping
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from carecheck.candidates.store import CandidateProfileStore
from carecheck.config.models.pipeline import PipelineConfig
from carecheck.extraction.base import DocumentExtractor, ExtractionResult
from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import PHASE_LATENCY, PHASE_RUNS
from carecheck.providers.llm import ExecutionContext, execution_scope
from carecheck.verification.cross_check import (
    compare_documents,
    normalize_name,
    parse_date,
)
from carecheck.verification.enums import (
    CrossCheckStatus,
    GuidanceMessage,
    IdentityStatus,
    Phase,
    VerificationLevel,
    WwccMethod,
    WwccStatus,
)
from carecheck.verification.events import EventRouter, PhaseEvent, PhaseEventType
from carecheck.verification.models import (
    ExtractedIdentity,
    ExtractedWwcc,
    PhaseOutcome,
    VerificationRecord,
)
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)

# WWCC states from which a cross-check may be requested
CROSS_CHECKABLE_WWCC = frozenset({WwccStatus.DOC_VERIFIED, WwccStatus.CLEARED})

UNAVAILABLE_PREFIX = "Automated check unavailable"


class PipelineOrchestrator:
    """Runs verification phases against a VerificationStore."""

    def __init__(
        self,
        store: VerificationStore,
        profiles: CandidateProfileStore,
        identity_extractor: DocumentExtractor,
        grant_email_extractor: DocumentExtractor,
        screenshot_extractor: DocumentExtractor,
        manual_extractor: DocumentExtractor,
        event_router: EventRouter | None = None,
        config: PipelineConfig | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Verification record store
            profiles: Candidate profile store holding the verification level
            identity_extractor: Passport and selfie extractor
            grant_email_extractor: Extractor for the grant_email method
            screenshot_extractor: Extractor for the service_nsw_app method
            manual_extractor: Extractor for the manual_entry method
            event_router: Router receiving phase events
            config: Pipeline configuration
            today: Reference date for expiry checks
        """
        self._store = store
        self._profiles = profiles
        self._identity_extractor = identity_extractor
        self._grant_email_extractor = grant_email_extractor
        self._screenshot_extractor = screenshot_extractor
        self._manual_extractor = manual_extractor
        self._events = event_router or EventRouter()
        self._config = config or PipelineConfig()
        self._today = today

    @property
    def events(self) -> EventRouter:
        return self._events

    # ------------------------------------------------------------------
    # Bounded entry point
    # ------------------------------------------------------------------

    async def trigger_phase(
        self,
        verification_id: UUID,
        phase: Phase,
        timeout: float | None = None,
    ) -> PhaseOutcome:
        """Run one phase under a wall-clock budget.

        A timeout leaves the record in its last-written state; the staleness
        monitor escalates it on a later read. There is no retry.
        """
        budget = timeout if timeout is not None else self._config.phase_timeout_seconds
        match phase:
            case Phase.IDENTITY:
                runner = self.run_identity_phase
            case Phase.WWCC:
                runner = self.run_wwcc_doc_phase
            case Phase.CROSS_CHECK:
                runner = self.run_cross_check_phase

        try:
            return await asyncio.wait_for(runner(verification_id), timeout=budget)
        except TimeoutError:
            PHASE_RUNS.labels(phase=phase.value, outcome="timeout").inc()
            logger.warning(
                "phase_timeout",
                verification_id=str(verification_id),
                phase=phase.value,
                timeout_seconds=budget,
            )
            return PhaseOutcome(
                verification_id=verification_id,
                phase=phase.value,
                success=False,
                error="timeout",
            )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def run_identity_phase(self, verification_id: UUID) -> PhaseOutcome:
        """Check the passport and selfie against the declared identity."""
        return await self._run_phase(
            Phase.IDENTITY,
            verification_id,
            status_field="identity_status",
            evaluate=self._evaluate_identity,
            on_written=self._after_identity,
        )

    async def _evaluate_identity(self, record: VerificationRecord) -> dict[str, Any]:
        if not record.passport_upload_ref or not record.selfie_upload_ref:
            return _identity_fields(
                IdentityStatus.REVIEW, issues=["Missing passport or selfie upload"]
            )

        declared = {
            "surname": record.surname,
            "given_names": record.given_names,
            "date_of_birth": (
                record.date_of_birth.isoformat() if record.date_of_birth else None
            ),
            "passport_country": record.passport_country,
        }
        try:
            result = await self._identity_extractor.extract(
                [record.passport_upload_ref, record.selfie_upload_ref], declared
            )
        except Exception as e:
            logger.warning(
                "identity_extraction_failed",
                verification_id=str(record.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return _identity_fields(
                IdentityStatus.REVIEW,
                issues=[f"{UNAVAILABLE_PREFIX}: {e}"],
                guidance=GuidanceMessage.TECHNICAL_RETRY,
            )

        extracted = ExtractedIdentity.model_validate(result.extracted_fields)
        expiry = parse_date(extracted.expiry_date)
        if expiry is not None and expiry < self._today():
            return _identity_fields(
                IdentityStatus.REJECTED,
                extracted=extracted,
                issues=[*result.issues, f"Passport expired on {expiry.isoformat()}"],
                guidance=GuidanceMessage.DOCUMENT_EXPIRED,
                rejection_reason="Passport has expired",
            )

        if not result.passed:
            return _identity_fields(
                IdentityStatus.FAILED,
                extracted=extracted,
                issues=result.issues or ["Identity documents could not be verified"],
                guidance=GuidanceMessage.PHOTO_UNCLEAR,
            )

        mismatches = _declared_mismatches(record, extracted)
        if mismatches:
            return _identity_fields(
                IdentityStatus.REVIEW,
                extracted=extracted,
                issues=[*result.issues, *mismatches],
                guidance=GuidanceMessage.DETAILS_MISMATCH,
            )

        return _identity_fields(
            IdentityStatus.VERIFIED, extracted=extracted, issues=result.issues
        )

    async def _after_identity(self, record: VerificationRecord) -> None:
        await self._emit(
            PhaseEventType.IDENTITY_COMPLETED,
            record,
            status=record.identity_status.value,
        )
        if record.identity_status != IdentityStatus.VERIFIED:
            return
        await self._set_level(record.candidate_id, VerificationLevel.ID_VERIFIED)
        await self._emit(PhaseEventType.IDENTITY_VERIFIED, record)
        await self.request_cross_check(record.id)

    # ------------------------------------------------------------------
    # WWCC document
    # ------------------------------------------------------------------

    async def run_wwcc_doc_phase(self, verification_id: UUID) -> PhaseOutcome:
        """Check the WWCC evidence using the extractor for its method."""
        return await self._run_phase(
            Phase.WWCC,
            verification_id,
            status_field="wwcc_status",
            evaluate=self._evaluate_wwcc,
            on_written=self._after_wwcc,
        )

    async def _evaluate_wwcc(self, record: VerificationRecord) -> dict[str, Any]:
        match record.wwcc_method:
            case WwccMethod.GRANT_EMAIL:
                extractor = self._grant_email_extractor
                document = record.wwcc_grant_email_ref
            case WwccMethod.SERVICE_NSW_APP:
                extractor = self._screenshot_extractor
                document = record.wwcc_screenshot_ref
            case WwccMethod.MANUAL_ENTRY:
                extractor = self._manual_extractor
                document = None
            case None:
                return _wwcc_fields(WwccStatus.REVIEW, issues=["No WWCC method submitted"])

        if record.wwcc_method != WwccMethod.MANUAL_ENTRY and not document:
            return _wwcc_fields(WwccStatus.REVIEW, issues=["Missing WWCC document upload"])

        declared = {
            "surname": record.surname,
            "given_names": record.given_names,
            "date_of_birth": (
                record.date_of_birth.isoformat() if record.date_of_birth else None
            ),
            "wwcc_number": record.wwcc_number,
            "wwcc_expiry": record.wwcc_expiry,
        }
        try:
            result = await extractor.extract([document] if document else [], declared)
        except Exception as e:
            logger.warning(
                "wwcc_extraction_failed",
                verification_id=str(record.id),
                method=record.wwcc_method.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return _wwcc_fields(
                WwccStatus.REVIEW,
                issues=[f"{UNAVAILABLE_PREFIX}: {e}"],
                guidance=GuidanceMessage.TECHNICAL_RETRY,
            )

        return self._wwcc_verdict(result)

    def _wwcc_verdict(self, result: ExtractionResult) -> dict[str, Any]:
        extracted = ExtractedWwcc.model_validate(result.extracted_fields)
        issues = list(result.issues)
        today = self._today()
        expiry = parse_date(extracted.expiry_date)

        if expiry is not None and expiry < today:
            if not any("expired" in issue.lower() for issue in issues):
                issues.append(f"WWCC has expired ({expiry.isoformat()})")
            return _wwcc_fields(
                WwccStatus.EXPIRED,
                extracted=extracted,
                issues=issues,
                guidance=GuidanceMessage.WWCC_EXPIRED,
            )

        min_validity = timedelta(days=self._config.wwcc_min_validity_days)
        expiring = expiry is not None and expiry < today + min_validity
        if expiring and not any("expires within" in issue for issue in issues):
            issues.append(
                f"WWCC expires within {self._config.wwcc_min_validity_days} days "
                f"({expiry.isoformat()})"
            )

        if not result.passed or expiring:
            if expiring:
                guidance = GuidanceMessage.WWCC_EXPIRED
            elif any("mismatch" in issue.lower() for issue in issues):
                guidance = GuidanceMessage.WWCC_DETAILS_MISMATCH
            else:
                guidance = GuidanceMessage.WWCC_DOCUMENT_UNREADABLE
            return _wwcc_fields(
                WwccStatus.FAILED,
                extracted=extracted,
                issues=issues or ["WWCC document could not be verified"],
                guidance=guidance,
            )

        return _wwcc_fields(WwccStatus.DOC_VERIFIED, extracted=extracted, issues=issues)

    async def _after_wwcc(self, record: VerificationRecord) -> None:
        await self._emit(
            PhaseEventType.WWCC_COMPLETED,
            record,
            status=record.wwcc_status.value,
        )
        if record.wwcc_status != WwccStatus.DOC_VERIFIED:
            return
        await self._emit(PhaseEventType.WWCC_DOC_VERIFIED, record)
        if record.identity_status == IdentityStatus.VERIFIED:
            await self.request_cross_check(record.id)

    # ------------------------------------------------------------------
    # Cross-check
    # ------------------------------------------------------------------

    async def request_cross_check(self, verification_id: UUID) -> bool:
        """Queue a cross-check if both document checks are favorable.

        Moves the cross-check to ``pending`` and emits
        ``cross_check.requested`` for the scheduler.

        Returns:
            True if a cross-check was requested
        """
        record = await self._store.get(verification_id)
        if record is None or not is_cross_check_ready(record):
            return False

        updated = await self._store.conditional_update(
            verification_id,
            {
                **record.guard("cross_check_status", CrossCheckStatus.NOT_STARTED),
                "identity_status": IdentityStatus.VERIFIED,
                "wwcc_status": record.wwcc_status,
            },
            {"cross_check_status": CrossCheckStatus.PENDING},
        )
        if updated is None:
            logger.debug("cross_check_request_lost_race", verification_id=str(verification_id))
            return False

        logger.info(
            "cross_check_requested",
            verification_id=str(verification_id),
            identity_generation=updated.identity_generation,
            wwcc_generation=updated.wwcc_generation,
        )
        await self._emit(PhaseEventType.CROSS_CHECK_REQUESTED, updated)
        return True

    async def run_cross_check_phase(self, verification_id: UUID) -> PhaseOutcome:
        """Compare passport-derived fields with WWCC-derived fields."""
        return await self._run_phase(
            Phase.CROSS_CHECK,
            verification_id,
            status_field="cross_check_status",
            evaluate=self._evaluate_cross_check,
            on_written=self._after_cross_check,
        )

    async def _evaluate_cross_check(self, record: VerificationRecord) -> dict[str, Any]:
        if (
            record.identity_status != IdentityStatus.VERIFIED
            or record.wwcc_status not in CROSS_CHECKABLE_WWCC
        ):
            reason = (
                "Cross-check preconditions not met: "
                f"identity is {record.identity_status.value}, "
                f"WWCC is {record.wwcc_status.value}"
            )
            return {
                "cross_check_status": CrossCheckStatus.REVIEW,
                "cross_check_issues": [reason],
                "cross_check_reasoning": reason,
                **_FOLLOW_UP_DONE,
            }

        result = compare_documents(record.identity_extracted, record.wwcc_extracted)
        fields: dict[str, Any] = {
            "cross_check_status": (
                CrossCheckStatus.PASSED if result.passed else CrossCheckStatus.REVIEW
            ),
            "cross_check_issues": result.issues,
            "cross_check_reasoning": result.reasoning,
            **_FOLLOW_UP_DONE,
        }
        if not result.passed:
            fields["wwcc_user_guidance"] = GuidanceMessage.NAME_MISMATCH.text
        return fields

    async def _after_cross_check(self, record: VerificationRecord) -> None:
        await self._emit(
            PhaseEventType.CROSS_CHECK_COMPLETED,
            record,
            status=record.cross_check_status.value,
        )
        if record.cross_check_status != CrossCheckStatus.PASSED:
            return
        level = (
            VerificationLevel.FULLY_VERIFIED
            if record.wwcc_status == WwccStatus.CLEARED
            else VerificationLevel.PROVISIONALLY_VERIFIED
        )
        await self._set_level(record.candidate_id, level)

    # ------------------------------------------------------------------
    # Shared phase machinery
    # ------------------------------------------------------------------

    async def _run_phase(
        self,
        phase: Phase,
        verification_id: UUID,
        *,
        status_field: str,
        evaluate: Callable[[VerificationRecord], Any],
        on_written: Callable[[VerificationRecord], Any],
    ) -> PhaseOutcome:
        start = time.perf_counter()
        try:
            claimed = await self._claim(verification_id, status_field)
            if claimed is None:
                PHASE_RUNS.labels(phase=phase.value, outcome="not_claimed").inc()
                return PhaseOutcome(
                    verification_id=verification_id,
                    phase=phase.value,
                    success=True,
                    claimed=False,
                )

            scope = ExecutionContext(
                verification_id=claimed.id,
                candidate_id=claimed.candidate_id,
                phase=phase.value,
            )
            with execution_scope(scope):
                fields = await evaluate(claimed)

            record = await self._store.conditional_update(
                verification_id,
                claimed.guard(status_field),
                fields,
            )
            if record is None:
                PHASE_RUNS.labels(phase=phase.value, outcome="discarded").inc()
                logger.warning(
                    "phase_result_discarded",
                    verification_id=str(verification_id),
                    phase=phase.value,
                )
                return PhaseOutcome(
                    verification_id=verification_id,
                    phase=phase.value,
                    success=False,
                    error="superseded",
                )

            status = getattr(record, status_field).value
            PHASE_RUNS.labels(phase=phase.value, outcome=status).inc()
            logger.info(
                f"{phase.value}_phase_completed",
                verification_id=str(verification_id),
                status=status,
                verification_status=int(record.verification_status),
                issue_count=len(fields.get(f"{phase.value}_issues", [])),
            )

            await on_written(record)
            return PhaseOutcome(
                verification_id=verification_id,
                phase=phase.value,
                success=True,
                status=status,
            )
        except Exception as e:
            PHASE_RUNS.labels(phase=phase.value, outcome="error").inc()
            logger.error(
                "phase_failed",
                verification_id=str(verification_id),
                phase=phase.value,
                error=str(e),
                exc_info=True,
            )
            return PhaseOutcome(
                verification_id=verification_id,
                phase=phase.value,
                success=False,
                error=str(e),
            )
        finally:
            PHASE_LATENCY.labels(phase=phase.value).observe(time.perf_counter() - start)

    async def _claim(
        self, verification_id: UUID, status_field: str
    ) -> VerificationRecord | None:
        record = await self._store.get(verification_id)
        if record is None:
            logger.warning("phase_record_not_found", verification_id=str(verification_id))
            return None

        claimed = await self._store.conditional_update(
            verification_id,
            record.guard(status_field, _PENDING[status_field]),
            {status_field: _PROCESSING[status_field]},
        )
        if claimed is None:
            logger.debug(
                "phase_not_claimed",
                verification_id=str(verification_id),
                status_field=status_field,
                current=getattr(record, status_field).value,
            )
        return claimed

    async def _set_level(self, candidate_id: UUID, level: VerificationLevel) -> None:
        try:
            await self._profiles.set_verification_level(candidate_id, level)
        except Exception as e:
            logger.error(
                "candidate_level_update_failed",
                candidate_id=str(candidate_id),
                level=level.name,
                error=str(e),
            )

    async def _emit(
        self, event_type: PhaseEventType, record: VerificationRecord, **payload: Any
    ) -> None:
        await self._events.route(
            PhaseEvent(
                type=event_type,
                verification_id=record.id,
                candidate_id=record.candidate_id,
                payload=payload,
            )
        )


# A finished cross-check settles any follow-up that was waiting on it
_FOLLOW_UP_DONE: Mapping[str, Any] = {"follow_up_pending": False, "follow_up_error": None}

_PENDING: Mapping[str, Any] = {
    "identity_status": IdentityStatus.PENDING,
    "wwcc_status": WwccStatus.PENDING,
    "cross_check_status": CrossCheckStatus.PENDING,
}

_PROCESSING: Mapping[str, Any] = {
    "identity_status": IdentityStatus.PROCESSING,
    "wwcc_status": WwccStatus.PROCESSING,
    "cross_check_status": CrossCheckStatus.PROCESSING,
}


def is_cross_check_ready(record: VerificationRecord) -> bool:
    """Both document checks favorable and no cross-check yet."""
    return (
        record.identity_status == IdentityStatus.VERIFIED
        and record.wwcc_status in CROSS_CHECKABLE_WWCC
        and record.cross_check_status == CrossCheckStatus.NOT_STARTED
    )


def _declared_mismatches(
    record: VerificationRecord, extracted: ExtractedIdentity
) -> list[str]:
    issues = []

    declared_surname = normalize_name(record.surname)
    read_surname = normalize_name(extracted.surname)
    if not read_surname:
        issues.append("Could not read surname from passport")
    elif declared_surname != read_surname:
        issues.append(
            f'Surname mismatch: submitted "{record.surname}" vs passport "{extracted.surname}"'
        )

    declared_given = normalize_name(record.given_names).split()
    read_given = normalize_name(extracted.given_names).split()
    if not read_given:
        issues.append("Could not read given names from passport")
    elif declared_given and declared_given[0] not in read_given:
        issues.append(
            f'Given name mismatch: submitted "{record.given_names}" '
            f'vs passport "{extracted.given_names}"'
        )

    read_dob = parse_date(extracted.date_of_birth)
    if read_dob is None:
        issues.append("Could not read date of birth from passport")
    elif record.date_of_birth and read_dob != record.date_of_birth:
        issues.append(
            f"Date of birth mismatch: submitted {record.date_of_birth.isoformat()} "
            f"vs passport {read_dob.isoformat()}"
        )

    return issues


def _identity_fields(
    status: IdentityStatus,
    *,
    extracted: ExtractedIdentity | None = None,
    issues: list[str] | None = None,
    guidance: GuidanceMessage | None = None,
    rejection_reason: str | None = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "identity_status": status,
        "identity_extracted": extracted,
        "identity_issues": issues or [],
        "identity_user_guidance": guidance.text if guidance else None,
        "identity_rejection_reason": rejection_reason,
    }
    if status != IdentityStatus.VERIFIED:
        fields["cross_check_status"] = CrossCheckStatus.NOT_STARTED
    return fields


def _wwcc_fields(
    status: WwccStatus,
    *,
    extracted: ExtractedWwcc | None = None,
    issues: list[str] | None = None,
    guidance: GuidanceMessage | None = None,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "wwcc_status": status,
        "wwcc_extracted": extracted,
        "wwcc_issues": issues or [],
        "wwcc_user_guidance": guidance.text if guidance else None,
        "wwcc_rejection_reason": None,
    }
    if status != WwccStatus.DOC_VERIFIED:
        fields["cross_check_status"] = CrossCheckStatus.NOT_STARTED
    return fields
