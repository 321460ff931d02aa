from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient

from app.services.task_queue import grading_queue


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # Neither backing service is configured under test.
    assert data["checks"] == {"database": "not_configured", "redis": "not_configured"}


def test_health_includes_slo_status(client: TestClient) -> None:
    data = client.get("/health").json()
    for slo_name in ("availability", "latency_p95", "grading_success"):
        slo = data["slos"][slo_name]
        assert set(slo) == {"current", "target", "healthy"}


def test_health_reports_queue_depth(client: TestClient) -> None:
    asyncio.run(grading_queue.enqueue(uuid4()))
    assert client.get("/health").json()["queue_depth"] == 1


def test_ready_returns_200(client: TestClient) -> None:
    assert client.get("/ready").status_code == 200
