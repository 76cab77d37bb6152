"""Schedules dependent phases in response to phase events."""

import asyncio
from uuid import UUID

from carecheck.observability.logging import get_logger
from carecheck.observability.metrics import FOLLOW_UP_FAILURES
from carecheck.verification.enums import Phase
from carecheck.verification.events import EventRouter, PhaseEvent, PhaseEventType
from carecheck.verification.models import PhaseOutcome
from carecheck.verification.pipeline import PipelineOrchestrator
from carecheck.verification.store import VerificationStore

logger = get_logger(__name__)


class PhaseScheduler:
    """Runs the cross-check when one is requested.

    The cross-check runs as a background task so the phase or admin action
    that requested it returns immediately. A follow-up that cannot run is
    never re-raised; it is recorded on the record as ``follow_up_pending``
    with the error. A cross-check left in ``pending`` or ``processing`` is
    requested again by the first status read after the stale threshold.
    """

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        store: VerificationStore,
        *,
        inline: bool = False,
    ) -> None:
        """Initialize the scheduler.

        Args:
            orchestrator: Orchestrator whose cross-check phase is scheduled
            store: Store used to record follow-up failures
            inline: Await the follow-up before returning instead of
                running it in the background
        """
        self._orchestrator = orchestrator
        self._store = store
        self._inline = inline
        self._tasks: set[asyncio.Task[None]] = set()

    def attach(self, router: EventRouter) -> None:
        """Register with the router for cross-check requests."""
        router.register_listener(PhaseEventType.CROSS_CHECK_REQUESTED.value, self.on_event)

    def detach(self, router: EventRouter) -> None:
        router.unregister_listener(PhaseEventType.CROSS_CHECK_REQUESTED.value, self.on_event)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def on_event(self, event: PhaseEvent) -> None:
        if event.type != PhaseEventType.CROSS_CHECK_REQUESTED:
            return
        if self._inline:
            await self._run_follow_up(event.verification_id)
            return

        task = asyncio.create_task(self._run_follow_up(event.verification_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug(
            "follow_up_scheduled",
            verification_id=str(event.verification_id),
            phase=Phase.CROSS_CHECK.value,
        )

    async def drain(self) -> None:
        """Wait for every scheduled follow-up to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_follow_up(self, verification_id: UUID) -> None:
        try:
            outcome = await self._orchestrator.trigger_phase(
                verification_id, Phase.CROSS_CHECK
            )
        except Exception as e:
            outcome = PhaseOutcome(
                verification_id=verification_id,
                phase=Phase.CROSS_CHECK.value,
                success=False,
                error=str(e),
            )

        # A superseded result means the candidate resubmitted; nothing to follow up
        if outcome.success or outcome.error == "superseded":
            return

        FOLLOW_UP_FAILURES.labels(phase=Phase.CROSS_CHECK.value).inc()
        logger.error(
            "follow_up_failed",
            verification_id=str(verification_id),
            phase=Phase.CROSS_CHECK.value,
            error=outcome.error,
        )
        try:
            await self._store.update(
                verification_id,
                {"follow_up_pending": True, "follow_up_error": outcome.error},
            )
        except Exception as e:
            logger.error(
                "follow_up_marker_failed",
                verification_id=str(verification_id),
                error=str(e),
            )
