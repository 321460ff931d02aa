"""Health and readiness endpoints.

  /health (liveness): the process answers.  Always 200; the body says
    whether dependencies are degraded and how the SLOs look.
  /ready (readiness): this instance can take traffic.  503 when the
    database or the grading queue is configured but unreachable, because
    submissions could neither be stored nor handed to the worker.

The SLO figures come from this process's own Prometheus registry, so
with several replicas each one reports only its share.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from prometheus_client import REGISTRY
from sqlalchemy import text

from app.core.slo import (
    evaluate_availability,
    evaluate_grading_success,
    evaluate_latency,
)
from app.db import engine as db
from app.db.redis import redis_pool
from app.services.task_queue import grading_queue

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _sum_counter(metric_name: str, label_filter: dict | None = None) -> float:
    """Sum a metric's samples across every label combination matching the filter.

    Example: _sum_counter("grading_outcomes_total", {"outcome": "error"})
    """
    total = 0.0
    for metric in REGISTRY.collect():
        for sample in metric.samples:
            if sample.name != metric_name:
                continue
            if label_filter and not all(
                sample.labels.get(k) == v for k, v in label_filter.items()
            ):
                continue
            total += sample.value
    return total


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
        return "ok"
    except Exception:
        logger.warning("Redis ping failed", exc_info=True)
        return "degraded"


async def _check_database() -> str:
    if db.engine is None:
        return "not_configured"
    try:
        async with db.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception:
        logger.warning("Database check failed", exc_info=True)
        return "degraded"


@router.get("/health")
async def health() -> dict:
    """Liveness probe + dependency status + SLO compliance."""
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"

    total_all = _sum_counter("http_requests_total")
    total_5xx = sum(
        _sum_counter("http_requests_total", {"status_code": str(code)})
        for code in range(500, 512)
    )
    availability_status = evaluate_availability(int(total_all), int(total_5xx))

    # avg * 2 as a rough p95; the client library exposes only sum and count.
    duration_sum = _sum_counter("http_request_duration_seconds_sum")
    duration_count = _sum_counter("http_request_duration_seconds_count")
    if duration_count > 0:
        p95_estimate_ms = (duration_sum / duration_count) * 1000 * 2.0
    else:
        p95_estimate_ms = 0.0
    latency_status = evaluate_latency(p95_estimate_ms)

    grading_status = evaluate_grading_success(
        int(_sum_counter("grading_outcomes_total")),
        int(_sum_counter("grading_outcomes_total", {"outcome": "error"})),
    )

    slos = {}
    for s in [availability_status, latency_status, grading_status]:
        slos[s.slo.name] = {
            "current": s.current,
            "target": s.slo.target,
            "healthy": s.healthy,
        }

    return {
        "status": overall,
        "checks": checks,
        "queue_depth": (
            None if checks["redis"] == "degraded" else await grading_queue.length()
        ),
        "slos": slos,
    }


@router.get("/ready")
async def ready() -> Response:
    """Readiness probe: 503 while a configured dependency is unreachable."""
    if "degraded" in (await _check_database(), await _check_redis()):
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
