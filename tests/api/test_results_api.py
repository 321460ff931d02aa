from __future__ import annotations

from uuid import uuid4

from fastapi.testclient import TestClient

from app.core.clock import FixedClock
from tests.conftest import (
    post_grade,
    seed_chapter,
    seed_exercise,
    seed_round,
    submit_waiting,
)


def test_exercise_result_without_submissions(client: TestClient) -> None:
    exercise = seed_exercise(seed_round(), max_points=10, points_to_pass=5)
    student = uuid4()
    resp = client.get(f"/v1/exercises/{exercise.id}/results/{student}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["grade"] is None
    assert body["passed"] is False
    assert body["submission_count"] == 0
    assert body["best_submission_id"] is None


def test_exercise_result_uses_best_submission(client: TestClient, clock: FixedClock) -> None:
    exercise = seed_exercise(seed_round(), max_points=10, points_to_pass=5)
    student = uuid4()
    first = submit_waiting(client, exercise, student)
    post_grade(client, first, points=7, max_points=10)
    clock.advance(60)
    second = submit_waiting(client, exercise, student)
    post_grade(client, second, points=3, max_points=10)

    body = client.get(f"/v1/exercises/{exercise.id}/results/{student}").json()
    assert body["grade"] == 7
    assert body["passed"] is True
    assert body["submission_count"] == 2
    assert body["best_submission_id"] == first["id"]


def test_exercise_result_unknown_exercise(client: TestClient) -> None:
    resp = client.get(f"/v1/exercises/{uuid4()}/results/{uuid4()}")
    assert resp.status_code == 404


def test_round_result_sums_exercises(client: TestClient) -> None:
    exercise_round = seed_round()
    seed_chapter(exercise_round, order=0)
    first = seed_exercise(exercise_round, max_points=10, order=1)
    second = seed_exercise(exercise_round, max_points=20, order=2)
    student = uuid4()
    sub = submit_waiting(client, first, student)
    post_grade(client, sub, points=6, max_points=10)

    resp = client.get(f"/v1/rounds/{exercise_round.id}/results/{student}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 6
    assert body["max_total"] == 30
    assert [e["exercise_id"] for e in body["exercises"]] == [str(first.id), str(second.id)]
    assert body["exercises"][1]["grade"] is None


def test_round_result_unknown_round(client: TestClient) -> None:
    assert client.get(f"/v1/rounds/{uuid4()}/results/{uuid4()}").status_code == 404
