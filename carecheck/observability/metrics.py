"""Prometheus metrics for carecheck.

Tracks phase executions, staleness escalations, OCG ingestion outcomes,
admin overrides and candidate notifications.
"""

from prometheus_client import Counter, Histogram

# Pipeline phases
PHASE_RUNS = Counter(
    "carecheck_phase_runs_total",
    "Total number of verification phase runs",
    labelnames=["phase", "outcome"],
)

PHASE_LATENCY = Histogram(
    "carecheck_phase_latency_seconds",
    "Latency of verification phases",
    labelnames=["phase"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 60.0),
)

FOLLOW_UP_FAILURES = Counter(
    "carecheck_follow_up_failures_total",
    "Dependent phases that failed to run after being scheduled",
    labelnames=["phase"],
)

# Safety net
STALENESS_ESCALATIONS = Counter(
    "carecheck_staleness_escalations_total",
    "Automated checks escalated to manual review after timing out",
    labelnames=["section"],
)

# Authoritative channel
OCG_RESULTS = Counter(
    "carecheck_ocg_results_total",
    "OCG verification result rows processed",
    labelnames=["action"],
)

ADMIN_ACTIONS = Counter(
    "carecheck_admin_actions_total",
    "Admin override actions performed",
    labelnames=["action"],
)

NOTIFICATIONS = Counter(
    "carecheck_notifications_total",
    "Candidate notification emails attempted",
    labelnames=["notification_type", "status"],
)
