"""Hatchet worker for scheduled verification jobs.

The worker runs inside the API process so the sweep sees the same stores
the API writes to. ``run_worker`` returns immediately when Hatchet is
disabled.
"""

import asyncio
from typing import Any

from carecheck.config.models.jobs import HatchetConfig
from carecheck.jobs.client import HatchetClient
from carecheck.jobs.workflows import SendFailureNotificationsWorkflow, register_workflow
from carecheck.notifications.failure_notifier import FailureNotifier
from carecheck.observability.logging import get_logger

logger = get_logger(__name__)

WORKER_NAME = "carecheck-worker"


def create_worker(hatchet: Any, notifier: FailureNotifier, config: HatchetConfig) -> Any:
    """Register workflows on a new Hatchet worker.

    Args:
        hatchet: Hatchet SDK instance
        notifier: Notifier the failure notification sweep runs
        config: Hatchet configuration

    Returns:
        Hatchet worker, not yet started
    """
    workflow_class = register_workflow(
        hatchet,
        notifier,
        cron_schedule=config.cron_failure_notifications,
        retries=config.retry_max_attempts,
    )
    worker = hatchet.worker(WORKER_NAME)
    worker.register_workflow(workflow_class())

    logger.info(
        "workflow_registered",
        workflow_name=SendFailureNotificationsWorkflow.WORKFLOW_NAME,
        cron_schedule=config.cron_failure_notifications,
    )
    return worker


async def run_worker(notifier: FailureNotifier, config: HatchetConfig) -> None:
    """Start the worker and block until it stops or is cancelled."""
    client = HatchetClient(config)
    hatchet = client.get_client()
    if hatchet is None:
        logger.info("hatchet_worker_not_started")
        return

    worker = create_worker(hatchet, notifier, config)
    logger.info("hatchet_worker_starting", server_url=config.server_url)
    try:
        # worker.start() blocks
        await asyncio.to_thread(worker.start)
    except asyncio.CancelledError:
        logger.info("hatchet_worker_stopped")
        raise
    except Exception as e:
        logger.error(
            "hatchet_worker_failed",
            error=str(e),
            error_type=type(e).__name__,
        )
