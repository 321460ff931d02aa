from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app


def _operations() -> set[tuple[str, str]]:
    return {
        (method.upper(), path)
        for path, operations in app.openapi()["paths"].items()
        for method in operations
    }


def test_app_title() -> None:
    assert app.title == "exercise-grading-service"


def test_grading_routes_registered() -> None:
    operations = _operations()
    assert ("POST", "/v1/exercises/{exercise_id}/submissions") in operations
    assert ("GET", "/v1/submissions/{submission_id}") in operations
    assert ("POST", "/v1/submissions/{submission_id}/grade") in operations
    assert ("PATCH", "/v1/submissions/{submission_id}") in operations
    assert ("DELETE", "/v1/submissions/{submission_id}") in operations
    assert ("GET", "/v1/exercises/{exercise_id}/results/{student_id}") in operations
    assert ("GET", "/v1/rounds/{round_id}/results/{student_id}") in operations


def test_operational_routes_registered(client: TestClient) -> None:
    operations = _operations()
    assert ("GET", "/health") in operations
    assert ("GET", "/ready") in operations
    # /metrics is kept out of the schema but still served.
    assert ("GET", "/metrics") not in operations
    assert client.get("/metrics").status_code == 200
