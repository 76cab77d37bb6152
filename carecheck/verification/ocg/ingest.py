"""Applies OCG verification results to verification records.

The OCG email is the only channel that can confirm a WWCC. A CLEARED row
moves a matching record's WWCC section to ``cleared``; once the cross-check
has passed that is the fully verified status. Every other result moves the
section to its adverse or waiting state and resets the cross-check.
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from carecheck.candidates.store import CandidateProfileStore
from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import OCG_RESULTS
from carecheck.verification.enums import CrossCheckStatus, IdentityStatus, WwccStatus
from carecheck.verification.errors import MalformedOcgEmailError
from carecheck.verification.events import PhaseEvent, PhaseEventType
from carecheck.verification.models import ExtractedWwcc, VerificationRecord, utc_now
from carecheck.verification.ocg.parser import (
    OcgAction,
    OcgResult,
    map_result_status,
    parse_authoritative_email,
)
from carecheck.verification.pipeline import PipelineOrchestrator
from carecheck.verification.status import derive_verification_level
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)

# WWCC states still waiting on the OCG
AWAITING_CONFIRMATION = frozenset(
    {
        WwccStatus.PENDING,
        WwccStatus.DOC_VERIFIED,
        WwccStatus.REVIEW,
        WwccStatus.APPLICATION_PENDING,
        WwccStatus.OCG_NOT_FOUND,
    }
)

NO_MATCH = "no_match"
ALREADY_CLEARED = "already_cleared"
INELIGIBLE = "ineligible"
SKIPPED = "skipped"
ERROR = "error"


class OcgRowReport(BaseModel):
    """What happened to one result row for one matching record."""

    reference_number: str
    result_status: str
    action: str = Field(..., description="Applied WWCC status or a skip reason")
    verification_id: UUID | None = None
    error: str | None = None


class OcgIngestionReport(BaseModel):
    """Summary of one ingested OCG email."""

    employer_id: str
    employer_name: str
    verification_datetime: str
    processed: int
    results: list[OcgRowReport] = Field(default_factory=list)


class OcgIngestionService:
    """Parses OCG emails and applies each result row."""

    def __init__(
        self,
        store: VerificationStore,
        profiles: CandidateProfileStore,
        orchestrator: PipelineOrchestrator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._orchestrator = orchestrator
        self._clock = clock

    async def ingest(self, html: str) -> OcgIngestionReport:
        """Parse an email and apply its results.

        A failure on one row is reported on that row and does not stop the
        others.

        Raises:
            MalformedOcgEmailError: If the email can't be parsed or has no results
        """
        email = parse_authoritative_email(html)
        if not email.results:
            raise MalformedOcgEmailError("No results in OCG email")

        rows: list[OcgRowReport] = []
        for result in email.results:
            rows.extend(await self._ingest_result(result))

        for row in rows:
            OCG_RESULTS.labels(action=row.action).inc()

        logger.info(
            "ocg_email_ingested",
            employer_id=email.employer_id,
            result_count=len(email.results),
            applied=sum(1 for r in rows if r.action in _APPLIED_ACTIONS),
        )
        return OcgIngestionReport(
            employer_id=email.employer_id,
            employer_name=email.employer_name,
            verification_datetime=email.verification_datetime,
            processed=len(rows),
            results=rows,
        )

    async def _ingest_result(self, result: OcgResult) -> list[OcgRowReport]:
        number = result.reference_number.strip().upper()
        if not number:
            return [self._row(result, SKIPPED, error="No reference number")]

        records = await self._store.find_by_wwcc_number(number)
        if not records:
            logger.warning("ocg_result_no_match", reference_number=number)
            return [self._row(result, NO_MATCH, error="No verification record found")]

        rows = []
        for record in records:
            try:
                rows.append(await self._apply(result, record))
            except Exception as e:
                logger.error(
                    "ocg_result_failed",
                    reference_number=number,
                    verification_id=str(record.id),
                    error=str(e),
                    exc_info=True,
                )
                rows.append(self._row(result, ERROR, record.id, error=str(e)))
        return rows

    async def _apply(self, result: OcgResult, record: VerificationRecord) -> OcgRowReport:
        if record.wwcc_status == WwccStatus.CLEARED:
            return self._row(result, ALREADY_CLEARED, record.id)
        if record.wwcc_status not in AWAITING_CONFIRMATION:
            return self._row(result, INELIGIBLE, record.id)

        action = map_result_status(result.result_status)
        updated = await self._store.conditional_update(
            record.id,
            record.guard("wwcc_status"),
            self._fields_for(action, result, record),
        )
        if updated is None:
            return self._row(
                result, ERROR, record.id, error="Verification changed during ingestion"
            )

        logger.info(
            "ocg_result_applied",
            verification_id=str(updated.id),
            reference_number=result.reference_number,
            result_status=result.result_status,
            wwcc_status=updated.wwcc_status.value,
            verification_status=int(updated.verification_status),
        )
        await self._orchestrator.events.route(
            PhaseEvent(
                type=PhaseEventType.OCG_RESULT_APPLIED,
                verification_id=updated.id,
                candidate_id=updated.candidate_id,
                payload={"result_status": result.result_status, "action": action.value},
            )
        )

        if (
            action is OcgAction.CLEAR
            and updated.identity_status == IdentityStatus.VERIFIED
            and updated.cross_check_status == CrossCheckStatus.NOT_STARTED
        ):
            await self._orchestrator.request_cross_check(updated.id)

        error = await self._sync_level(updated)
        return self._row(result, action.wwcc_status.value, updated.id, error=error)

    def _fields_for(
        self, action: OcgAction, result: OcgResult, record: VerificationRecord
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "wwcc_status": action.wwcc_status,
            "ocg_result_status": result.result_status,
            "ocg_result_text": result.result_text,
            "ocg_verified_at": self._clock(),
        }
        if result.expiry_date:
            fields["wwcc_expiry"] = date.fromisoformat(result.expiry_date)

        match action:
            case OcgAction.CLEAR:
                fields["wwcc_rejection_reason"] = None
                fields["wwcc_user_guidance"] = None
                if record.wwcc_extracted is None:
                    fields["wwcc_extracted"] = ExtractedWwcc(
                        surname=result.family_name or None,
                        wwcc_number=result.reference_number.strip().upper(),
                        expiry_date=result.expiry_date,
                    )
            case OcgAction.REVIEW:
                fields["cross_check_status"] = CrossCheckStatus.NOT_STARTED
                fields["wwcc_issues"] = [
                    *record.wwcc_issues,
                    f"Unrecognised OCG result status: {result.result_status}",
                ]
            case OcgAction.APPLICATION_PENDING:
                fields["cross_check_status"] = CrossCheckStatus.NOT_STARTED
            case (
                OcgAction.OCG_NOT_FOUND
                | OcgAction.BARRED
                | OcgAction.CLOSED
                | OcgAction.EXPIRED
            ):
                fields["cross_check_status"] = CrossCheckStatus.NOT_STARTED
                fields["wwcc_rejection_reason"] = (
                    f"OCG: {result.result_status}: {result.result_text}".rstrip(": ")
                )
        return fields

    async def _sync_level(self, record: VerificationRecord) -> str | None:
        latest = await self._store.get(record.id) or record
        level = derive_verification_level(
            latest.identity_status, latest.wwcc_status, latest.cross_check_status
        )
        try:
            await self._profiles.set_verification_level(latest.candidate_id, level)
        except Exception as e:
            logger.error(
                "ocg_level_update_failed",
                verification_id=str(record.id),
                level=level.name,
                error=str(e),
            )
            return f"Candidate level update failed: {e}"
        return None

    @staticmethod
    def _row(
        result: OcgResult,
        action: str,
        verification_id: UUID | None = None,
        error: str | None = None,
    ) -> OcgRowReport:
        return OcgRowReport(
            reference_number=result.reference_number.strip().upper(),
            result_status=result.result_status,
            action=action,
            verification_id=verification_id,
            error=error,
        )


_APPLIED_ACTIONS = frozenset(action.wwcc_status.value for action in OcgAction)
