"""Background job infrastructure.

Hatchet-based scheduling for the failure notification sweep.

Usage:
    from carecheck.jobs import HatchetClient
    from carecheck.jobs.workflows import register_workflow

    client = HatchetClient(settings.jobs.hatchet)
    hatchet = client.get_client()
    if hatchet is not None:
        register_workflow(hatchet, notifier)
"""

from carecheck.jobs.client import HatchetClient

__all__ = ["HatchetClient"]
