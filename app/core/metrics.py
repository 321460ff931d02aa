"""Application metrics using the Prometheus client library.

All metrics are defined here so there is a single inventory of what the
service measures.  Other modules import the metric they own and
increment/observe it at the point of action.

Prometheus pulls these from GET /metrics.  Counters only go up, so
dashboards use rate(); e.g. the share of submissions ending in Error:

  rate(grading_outcomes_total{outcome="error"}[5m])
    / rate(grading_outcomes_total[5m])
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Grading metrics
# ---------------------------------------------------------------------------

GRADING_OUTCOMES = Counter(
    "grading_outcomes_total",
    "Submissions reaching a terminal grading state",
    ["outcome"],  # ready|error|rejected
)

LATE_PENALTIES = Counter(
    "late_penalties_total",
    "Scored submissions that were classified late",
    ["lateness"],  # late_with_penalty|late_rejected
)

SUBMISSION_LIMIT_EXCEEDED = Counter(
    "submission_limit_exceeded_total",
    "Scored submissions zeroed because the attempt limit was exceeded",
)

GRADEBOOK_PUSHES = Counter(
    "gradebook_pushes_total",
    "Best-score recomputations pushed to the gradebook",
)

GRADING_QUEUE_DEPTH = Gauge(
    "grading_queue_depth",
    "Submissions waiting in the grading queue",
)

GRADING_BACKEND_DURATION = Histogram(
    "grading_backend_duration_seconds",
    "Round-trip time of calls to the remote grading service",
    # Automatic graders range from instant checks to container runs.
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)
