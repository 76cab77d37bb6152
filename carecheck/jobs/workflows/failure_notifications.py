"""Failure notification workflow.

Scheduled job that emails candidates whose automated check failed and who
haven't acted on it. Runs every five minutes by default.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from carecheck.notifications.failure_notifier import FailureNotifier
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SendFailureNotificationsInput:
    """Input for the failure notification workflow."""

    now: str | None = None  # ISO timestamp; None = current time


@dataclass
class SendFailureNotificationsOutput:
    """Output from the failure notification workflow."""

    sent: int
    skipped: int
    failed: int
    success: bool
    error: str | None = None


class SendFailureNotificationsWorkflow:
    """Workflow to send delayed failure notifications.

    Idempotent: the notifier's dedup guards make a re-run within the same
    failure episode send nothing.
    """

    WORKFLOW_NAME = "send-failure-notifications"
    CRON_SCHEDULE = "*/5 * * * *"

    def __init__(self, notifier: FailureNotifier) -> None:
        self._notifier = notifier

    async def run(
        self, input_data: SendFailureNotificationsInput
    ) -> SendFailureNotificationsOutput:
        """Execute one sweep.

        Args:
            input_data: Workflow input with an optional reference time

        Returns:
            SendFailureNotificationsOutput with the sweep counts
        """
        now: datetime | None = None
        if input_data.now:
            try:
                now = datetime.fromisoformat(input_data.now)
            except ValueError:
                return SendFailureNotificationsOutput(
                    sent=0,
                    skipped=0,
                    failed=0,
                    success=False,
                    error=f"Invalid now: {input_data.now}",
                )

        try:
            result = await self._notifier.run(now)
        except Exception as e:
            logger.error("send_failure_notifications_failed", error=str(e))
            return SendFailureNotificationsOutput(
                sent=0, skipped=0, failed=0, success=False, error=str(e)
            )

        return SendFailureNotificationsOutput(
            sent=result.sent,
            skipped=result.skipped,
            failed=result.failed,
            success=True,
        )


def register_workflow(
    hatchet: Any,
    notifier: FailureNotifier,
    cron_schedule: str = SendFailureNotificationsWorkflow.CRON_SCHEDULE,
    retries: int = 3,
) -> Any:
    """Register the failure notification workflow with Hatchet.

    Args:
        hatchet: Hatchet SDK instance
        notifier: Notifier the workflow runs
        cron_schedule: Cron expression for the sweep
        retries: Step retry attempts

    Returns:
        Registered workflow
    """
    workflow_instance = SendFailureNotificationsWorkflow(notifier)

    @hatchet.workflow(
        name=SendFailureNotificationsWorkflow.WORKFLOW_NAME,
        on_crons=[cron_schedule],
    )
    class HatchetSendFailureNotificationsWorkflow:
        """Hatchet workflow wrapper for failure notifications."""

        @hatchet.step(retries=retries, retry_delay="60s")
        async def send_notifications(self, context: Any) -> dict:
            input_data = context.workflow_input() or {}
            result = await workflow_instance.run(
                SendFailureNotificationsInput(now=input_data.get("now"))
            )
            return {
                "sent": result.sent,
                "skipped": result.skipped,
                "failed": result.failed,
                "success": result.success,
                "error": result.error,
            }

    return HatchetSendFailureNotificationsWorkflow
