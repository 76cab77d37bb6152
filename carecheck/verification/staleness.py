"""Read-time safety net for stuck automated checks.

There is no background timer. Every status read checks whether an automated
check has been sitting in ``pending`` or ``processing`` for longer than the
threshold and, if so, hands the section to manual review. A cross-check that
stalls the same way is requested again instead. Because the
status-poll endpoint is the only thing the candidate waits on, a stuck
pipeline is always repaired before anyone observes it for long.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

from carecheck.config.models.pipeline import PipelineConfig
from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import STALENESS_ESCALATIONS
from carecheck.verification.enums import (
    CrossCheckStatus,
    GuidanceMessage,
    IdentityStatus,
    OverallStatus,
    Section,
    WwccStatus,
)
from carecheck.verification.errors import VerificationNotFoundError
from carecheck.verification.events import EventRouter, PhaseEvent, PhaseEventType
from carecheck.verification.models import StatusReport, VerificationRecord, utc_now
from carecheck.verification.status import status_label
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)

STALE_ISSUE = "Auto-check timed out, escalated to manual review"
CROSS_CHECK_STALE_ERROR = "Cross-check did not finish in time, requested again"

_AUTO_STATES: dict[Section, frozenset] = {
    Section.IDENTITY: frozenset({IdentityStatus.PENDING, IdentityStatus.PROCESSING}),
    Section.WWCC: frozenset({WwccStatus.PENDING, WwccStatus.PROCESSING}),
}

_CROSS_CHECK_AUTO_STATES = frozenset({CrossCheckStatus.PENDING, CrossCheckStatus.PROCESSING})

_REVIEW: dict[Section, IdentityStatus | WwccStatus] = {
    Section.IDENTITY: IdentityStatus.REVIEW,
    Section.WWCC: WwccStatus.REVIEW,
}


class StalenessMonitor:
    """Escalates stale automated checks when a record is read."""

    def __init__(
        self,
        store: VerificationStore,
        config: PipelineConfig | None = None,
        event_router: EventRouter | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._threshold = timedelta(
            seconds=(config or PipelineConfig()).stale_threshold_seconds
        )
        self._events = event_router
        self._clock = clock

    def stale_sections(self, record: VerificationRecord, now: datetime) -> list[Section]:
        """Sections still in an automated state past the threshold."""
        if now - record.updated_at <= self._threshold:
            return []
        return [
            section
            for section in Section
            if record.section_status(section) in _AUTO_STATES[section]
        ]

    def cross_check_stalled(self, record: VerificationRecord, now: datetime) -> bool:
        """A requested cross-check has not finished within the threshold."""
        return (
            record.cross_check_status in _CROSS_CHECK_AUTO_STATES
            and now - record.updated_at > self._threshold
        )

    async def check(self, record: VerificationRecord) -> tuple[VerificationRecord, list[Section]]:
        """Escalate any stale section of ``record`` and restart a stalled cross-check.

        Returns:
            The current record and the sections this call escalated
        """
        now = self._clock()
        stalled_cross_check = self.cross_check_stalled(record, now)
        escalated: list[Section] = []
        for section in self.stale_sections(record, now):
            observed = record.section_status(section)
            issues = [*getattr(record, f"{section.value}_issues"), STALE_ISSUE]
            updated = await self._store.conditional_update(
                record.id,
                record.guard(section.status_field),
                {
                    section.status_field: _REVIEW[section],
                    f"{section.value}_issues": issues,
                    f"{section.value}_user_guidance": GuidanceMessage.TECHNICAL_STALE.text,
                    "cross_check_status": CrossCheckStatus.NOT_STARTED,
                },
            )
            if updated is None:
                # A phase finished or the candidate resubmitted since the read
                latest = await self._store.get(record.id)
                record = latest or record
                continue

            record = updated
            escalated.append(section)
            STALENESS_ESCALATIONS.labels(section=section.value).inc()
            logger.warning(
                "staleness_escalated",
                verification_id=str(record.id),
                section=section.value,
                previous_status=observed.value,
                threshold_seconds=self._threshold.total_seconds(),
            )
            await self._emit(
                PhaseEventType.STALENESS_ESCALATED,
                record,
                section=section.value,
                previous_status=observed.value,
            )

        if stalled_cross_check:
            record = await self._restart_cross_check(record)
        return record, escalated

    async def _restart_cross_check(self, record: VerificationRecord) -> VerificationRecord:
        """Put a stalled cross-check back in ``pending`` and request it again.

        A cross-check has no manual-review state of its own, so instead of
        escalating it is handed back to the scheduler. Until it runs the record
        carries ``follow_up_pending`` and the admin run endpoint can claim it.
        """
        observed = record.cross_check_status
        if observed not in _CROSS_CHECK_AUTO_STATES:
            return record
        updated = await self._store.conditional_update(
            record.id,
            record.guard("cross_check_status"),
            {
                "cross_check_status": CrossCheckStatus.PENDING,
                "follow_up_pending": True,
                "follow_up_error": CROSS_CHECK_STALE_ERROR,
            },
        )
        if updated is None:
            latest = await self._store.get(record.id)
            return latest or record

        STALENESS_ESCALATIONS.labels(section="cross_check").inc()
        logger.warning(
            "cross_check_restarted",
            verification_id=str(updated.id),
            previous_status=observed.value,
            threshold_seconds=self._threshold.total_seconds(),
        )
        await self._emit(PhaseEventType.CROSS_CHECK_REQUESTED, updated)
        # An inline scheduler may already have finished the cross-check
        return await self._store.get(updated.id) or updated

    async def _emit(
        self, event_type: PhaseEventType, record: VerificationRecord, **payload: str
    ) -> None:
        if self._events is None:
            return
        await self._events.route(
            PhaseEvent(
                type=event_type,
                verification_id=record.id,
                candidate_id=record.candidate_id,
                payload=payload,
            )
        )

    async def read_status(self, candidate_id: UUID) -> StatusReport:
        """Candidate's current status, repairing stale checks first.

        Raises:
            VerificationNotFoundError: If the candidate has no record
        """
        record = await self._store.get_by_candidate(candidate_id)
        if record is None:
            raise VerificationNotFoundError(
                f"No verification record for candidate {candidate_id}"
            )

        record, escalated = await self.check(record)
        return build_status_report(record, escalated)


def build_status_report(
    record: VerificationRecord, escalated: list[Section] | None = None
) -> StatusReport:
    code = record.verification_status
    return StatusReport(
        verification_id=record.id,
        candidate_id=record.candidate_id,
        verification_status=code,
        label=status_label(code),
        identity_status=record.identity_status,
        wwcc_status=record.wwcc_status,
        cross_check_status=record.cross_check_status,
        identity_issues=record.identity_issues,
        wwcc_issues=record.wwcc_issues,
        identity_user_guidance=record.identity_user_guidance,
        wwcc_user_guidance=record.wwcc_user_guidance,
        is_provisionally_verified=code == OverallStatus.PROVISIONALLY_VERIFIED,
        is_fully_verified=code == OverallStatus.FULLY_VERIFIED,
        escalated=escalated or [],
    )
