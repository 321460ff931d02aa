"""SLO (Service Level Objective) definitions for the grading service.

  SLI: percentage of HTTP requests returning non-5xx status codes
  SLO: 99.5% of requests succeed (availability)

  SLI: 95th percentile HTTP response time
  SLO: p95 latency < 500ms

  SLI: percentage of finished grading attempts that did not end in ERROR
  SLO: 98% of submissions reach READY or REJECTED

ERROR vs REJECTED
------------------
Only ERROR spends the grading budget.  REJECTED means the backend worked
and judged the content invalid; that is the student's problem, not ours.
A grading backend that is down or returning 5xx shows up here long
before anyone files a ticket.

The evaluation functions are pure: they take counter values as
arguments and never read Prometheus themselves, so /health and the
tests feed them numbers directly.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SLODefinition:
    """A single SLO target.

    name:        Human-readable identifier (e.g., "availability")
    description: What this SLO measures
    target:      The target percentage (e.g., 99.5 means 99.5%)
    window:      Rolling evaluation window (e.g., "30d" = 30 days)
    """

    name: str
    description: str
    target: float
    window: str


@dataclass(frozen=True, slots=True)
class SLOStatus:
    slo: SLODefinition
    current: float
    budget_remaining: float  # negative = breached
    healthy: bool


AVAILABILITY_SLO = SLODefinition(
    name="availability",
    description="Percentage of non-5xx responses (successful requests)",
    target=99.5,
    window="30d",
)

LATENCY_SLO = SLODefinition(
    name="latency_p95",
    description="95th percentile response time under 500ms",
    target=95.0,
    window="30d",
)

GRADING_SUCCESS_SLO = SLODefinition(
    name="grading_success",
    description="Finished grading attempts that did not end in error",
    target=98.0,
    window="7d",
)

ALL_SLOS = [AVAILABILITY_SLO, LATENCY_SLO, GRADING_SUCCESS_SLO]


def _ratio_status(slo: SLODefinition, total: int, bad: int) -> SLOStatus:
    current = 100.0 if total == 0 else ((total - bad) / total) * 100
    return SLOStatus(
        slo=slo,
        current=round(current, 3),
        budget_remaining=round(current - slo.target, 3),
        healthy=current >= slo.target,
    )


def evaluate_availability(total_requests: int, error_requests: int) -> SLOStatus:
    """availability = (total - errors) / total × 100; 100 with no traffic."""
    return _ratio_status(AVAILABILITY_SLO, total_requests, error_requests)


def evaluate_latency(p95_ms: float) -> SLOStatus:
    """Approximate the share of requests under 500ms from a p95 value.

    p95 at or below the threshold means at least 95% are fast enough;
    above it the share falls off linearly.
    """
    threshold_ms = 500.0
    if p95_ms <= threshold_ms:
        current = min(95.0 + (threshold_ms - p95_ms) / threshold_ms * 5.0, 100.0)
    else:
        current = max(0.0, 95.0 - (p95_ms - threshold_ms) / threshold_ms * 95.0)

    return SLOStatus(
        slo=LATENCY_SLO,
        current=round(current, 3),
        budget_remaining=round(current - LATENCY_SLO.target, 3),
        healthy=current >= LATENCY_SLO.target,
    )


def evaluate_grading_success(total_outcomes: int, error_outcomes: int) -> SLOStatus:
    return _ratio_status(GRADING_SUCCESS_SLO, total_outcomes, error_outcomes)
