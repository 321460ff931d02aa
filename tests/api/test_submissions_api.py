"""Submission endpoints end to end over the in-memory stores."""

from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api import dependencies
from app.core.clock import FixedClock
from app.services.task_queue import grading_queue
from tests.conftest import (
    DAY,
    NOW,
    post_grade,
    seed_exercise,
    seed_round,
    submit,
    submit_waiting,
)


# ---- create ----


def test_create_submission_returns_201_and_enqueues(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    student = uuid4()
    resp = submit(
        client,
        exercise.id,
        student,
        data={"answer": ["a", "b"]},
        files={"code": ("main.py", b"print(1)", "text/x-python")},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "initialized"
    assert body["submission_time"] == NOW
    assert body["attempt"] == 1
    assert body["grade"] is None
    assert body["submission_data"] == [["answer", "a"], ["answer", "b"]]
    assert body["files"] == [
        {"field_key": "code", "filename": "main.py", "mimetype": "text/x-python", "size": 8}
    ]

    job = asyncio.run(grading_queue.dequeue())
    assert job is not None and str(job.submission_id) == body["id"]


def test_create_submission_unknown_exercise(client: TestClient) -> None:
    resp = submit(client, uuid4(), uuid4(), data={"a": "1"})
    assert resp.status_code == 404
    assert asyncio.run(grading_queue.length()) == 0


def test_create_submission_requires_submitter(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    resp = client.post(f"/v1/exercises/{exercise.id}/submissions", data={"a": "1"})
    assert resp.status_code == 422


def test_get_submission(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    created = submit(client, exercise.id, uuid4(), data={"a": "1"}).json()
    resp = client.get(f"/v1/submissions/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["hash"] == created["hash"]


def test_get_unknown_submission(client: TestClient) -> None:
    assert client.get(f"/v1/submissions/{uuid4()}").status_code == 404


# ---- grading callback ----


def test_callback_grades_and_pushes_gradebook(client: TestClient) -> None:
    exercise = seed_exercise(seed_round(), max_points=20)
    student = uuid4()
    sub = submit_waiting(client, exercise, student)

    resp = post_grade(
        client,
        sub,
        points=8,
        max_points=10,
        feedback="<p>good</p>",
        grading_data={"grading_data": {"errors": "warning: slow"}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ready"
    assert body["grade"] == 16
    assert body["lateness"] == "on_time"
    assert body["late_penalty_applied"] is None
    assert body["feedback"] == "<p>good</p>"
    assert body["grading_errors"] == "warning: slow"

    pushed = asyncio.run(dependencies.gradebook.get(exercise.id, student))
    assert pushed.raw_grade == 16
    assert pushed.modified_by == student


def test_callback_late_submission_is_penalised(client: TestClient, clock: FixedClock) -> None:
    exercise = seed_exercise(seed_round(late_submission_penalty=0.5), max_points=10)
    clock.advance(2 * DAY)
    sub = submit_waiting(client, exercise, uuid4())

    body = post_grade(client, sub, points=10, max_points=10).json()
    assert body["grade"] == 5
    assert body["late_penalty_applied"] == 0.5
    assert body["late_penalty_percent"] == 50
    assert body["lateness"] == "late_with_penalty"


def test_callback_no_penalties(client: TestClient, clock: FixedClock) -> None:
    exercise = seed_exercise(seed_round(late_submissions_allowed=False), max_points=10)
    clock.advance(2 * DAY)
    sub = submit_waiting(client, exercise, uuid4())

    body = post_grade(client, sub, points=10, max_points=10, no_penalties=True).json()
    assert body["grade"] == 10
    assert body["lateness"] is None


def test_callback_wrong_hash(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    sub = submit_waiting(client, exercise, uuid4())
    resp = client.post(
        f"/v1/submissions/{sub['id']}/grade",
        json={"hash": "x" * 32, "points": 1, "max_points": 1},
    )
    assert resp.status_code == 403
    assert client.get(f"/v1/submissions/{sub['id']}").json()["status"] == "waiting"


def test_callback_error_and_rejected(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    errored = submit_waiting(client, exercise, uuid4())
    rejected = submit_waiting(client, exercise, uuid4())

    assert post_grade(client, errored, error=True, feedback="crash").json()["status"] == "error"
    body = post_grade(client, rejected, rejected=True).json()
    assert body["status"] == "rejected"
    assert body["grade"] is None


def test_callback_on_initialized_submission_conflicts(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    sub = submit(client, exercise.id, uuid4(), data={"a": "1"}).json()
    resp = post_grade(client, sub, points=1, max_points=1)
    assert resp.status_code == 409


def test_callback_on_errored_submission_conflicts(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    sub = submit_waiting(client, exercise, uuid4())
    post_grade(client, sub, error=True)
    assert post_grade(client, sub, points=1, max_points=1).status_code == 409


def test_attempts_over_limit_score_zero(client: TestClient, clock: FixedClock) -> None:
    exercise = seed_exercise(seed_round(), max_points=10, max_submissions=3)
    student = uuid4()
    grades = []
    for _ in range(4):
        clock.advance(60)
        sub = submit_waiting(client, exercise, student)
        grades.append(post_grade(client, sub, points=10, max_points=10).json()["grade"])
    assert grades == [10, 10, 10, 0]

    pushed = asyncio.run(dependencies.gradebook.get(exercise.id, student))
    assert pushed.raw_grade == 10


# ---- manual grading ----


def test_manual_grade(client: TestClient) -> None:
    exercise = seed_exercise(seed_round(), max_points=10)
    student, grader = uuid4(), uuid4()
    sub = submit_waiting(client, exercise, student)
    post_grade(client, sub, points=2, max_points=10)

    resp = client.patch(
        f"/v1/submissions/{sub['id']}",
        json={"grade": 9, "grader_id": str(grader), "assistant_feedback": "Well argued."},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["grade"] == 9
    assert body["grader_id"] == str(grader)
    assert body["assistant_feedback"] == "Well argued."

    pushed = asyncio.run(dependencies.gradebook.get(exercise.id, student))
    assert (pushed.raw_grade, pushed.modified_by) == (9, grader)


def test_manual_grade_out_of_range(client: TestClient) -> None:
    exercise = seed_exercise(seed_round(), max_points=10)
    sub = submit_waiting(client, exercise, uuid4())
    post_grade(client, sub, points=2, max_points=10)
    resp = client.patch(
        f"/v1/submissions/{sub['id']}", json={"grade": 11, "grader_id": str(uuid4())}
    )
    assert resp.status_code == 422


def test_manual_grade_requires_ready(client: TestClient) -> None:
    exercise = seed_exercise(seed_round())
    sub = submit_waiting(client, exercise, uuid4())
    resp = client.patch(
        f"/v1/submissions/{sub['id']}", json={"grade": 1, "grader_id": str(uuid4())}
    )
    assert resp.status_code == 409


# ---- delete ----


def test_delete_best_submission_lowers_grade(client: TestClient, clock: FixedClock) -> None:
    exercise = seed_exercise(seed_round(), max_points=10)
    student = uuid4()
    low = submit_waiting(client, exercise, student)
    post_grade(client, low, points=4, max_points=10)
    clock.advance(60)
    high = submit_waiting(client, exercise, student)
    post_grade(client, high, points=9, max_points=10)

    assert client.delete(f"/v1/submissions/{high['id']}").status_code == 204
    assert asyncio.run(dependencies.gradebook.get(exercise.id, student)).raw_grade == 4
    assert client.get(f"/v1/submissions/{high['id']}").status_code == 404

    assert client.delete(f"/v1/submissions/{low['id']}").status_code == 204
    assert asyncio.run(dependencies.gradebook.get(exercise.id, student)) is None


def test_delete_without_gradebook_update(client: TestClient) -> None:
    exercise = seed_exercise(seed_round(), max_points=10)
    student = uuid4()
    sub = submit_waiting(client, exercise, student)
    post_grade(client, sub, points=7, max_points=10)

    resp = client.delete(
        f"/v1/submissions/{sub['id']}", params={"update_gradebook": "false"}
    )
    assert resp.status_code == 204
    assert asyncio.run(dependencies.gradebook.get(exercise.id, student)).raw_grade == 7


def test_delete_unknown_submission(client: TestClient) -> None:
    assert client.delete(f"/v1/submissions/{uuid4()}").status_code == 404
