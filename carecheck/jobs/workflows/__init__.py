"""Hatchet workflow definitions.

- SendFailureNotificationsWorkflow: emails candidates whose automated check
  failed and who haven't resubmitted
"""

from carecheck.jobs.workflows.failure_notifications import (
    SendFailureNotificationsInput,
    SendFailureNotificationsOutput,
    SendFailureNotificationsWorkflow,
    register_workflow,
)

__all__ = [
    "SendFailureNotificationsInput",
    "SendFailureNotificationsOutput",
    "SendFailureNotificationsWorkflow",
    "register_workflow",
]
