"""Demo: submit, grade and re-grade a submission using FastAPI TestClient.

The grading backend is an httpx.MockTransport, so nothing leaves the
process.  Everything runs against the in-memory stores.

Run with:
    python scripts/demo_grading_flow.py
"""

from __future__ import annotations

import asyncio
import time
from uuid import uuid4

import httpx
from fastapi.testclient import TestClient

from app.api import dependencies
from app.main import app
from app.models.course import Category, Exercise, ExerciseRound
from app.services.grading_client import HttpGradingBackend
from app.services.task_queue import grading_queue
from app.worker import process_job

DAY = 86_400


def fake_grader(request: httpx.Request) -> httpx.Response:
    """Scores every submission 7/10."""
    return httpx.Response(
        200,
        json={
            "points": 7,
            "max_points": 10,
            "feedback": f"<p>Graded {request.url.params['submission_id']}</p>",
        },
    )


def seed_exercise() -> Exercise:
    now = int(time.time())
    exercise_round = ExerciseRound.new(
        name="Week 1",
        opening_time=now - DAY,
        closing_time=now + DAY,
        late_submissions_allowed=True,
        late_submission_deadline=now + 7 * DAY,
        late_submission_penalty=0.5,
    )
    category = Category.new(name="Programming")
    exercise = Exercise.new(
        round_id=exercise_round.id,
        category_id=category.id,
        name="Hello world",
        max_points=20,
        points_to_pass=10,
        max_submissions=3,
        service_url="http://grader.local/hello",
    )
    dependencies.course_repo.add_round(exercise_round)
    dependencies.course_repo.add_category(category)
    dependencies.course_repo.add_learning_object(exercise)
    return exercise


async def run_queued_jobs() -> int:
    backend = HttpGradingBackend(
        client=httpx.AsyncClient(transport=httpx.MockTransport(fake_grader))
    )
    done = 0
    try:
        while (job := await grading_queue.dequeue()) is not None:
            await process_job(job, backend)
            done += 1
    finally:
        await backend.aclose()
    return done


def main() -> None:
    client = TestClient(app)
    exercise = seed_exercise()
    student = uuid4()
    grader = uuid4()

    # ── Step 1: student submits ─────────────────────────────────────
    r = client.post(
        f"/v1/exercises/{exercise.id}/submissions",
        params={"submitter_id": str(student)},
        data={"language": "python"},
        files={"file1": ("hello.py", b"print('hello')", "text/x-python")},
    )
    submission = r.json()
    print(
        f"1. POST submissions        → {r.status_code}  "
        f"status={submission['status']}  attempt={submission['attempt']}"
    )

    # ── Step 2: worker grades it ────────────────────────────────────
    done = asyncio.run(run_queued_jobs())
    r = client.get(f"/v1/submissions/{submission['id']}")
    print(
        f"2. worker ran {done} job(s)    → status={r.json()['status']}  "
        f"grade={r.json()['grade']}/{exercise.max_points}"
    )

    # ── Step 3: exercise result ─────────────────────────────────────
    r = client.get(f"/v1/exercises/{exercise.id}/results/{student}")
    print(f"3. GET  exercise result    → {r.status_code}  passed={r.json()['passed']}")

    # ── Step 4: assistant raises the grade by hand ────────────────────
    r = client.patch(
        f"/v1/submissions/{submission['id']}",
        json={"grade": 18, "grader_id": str(grader), "assistant_feedback": "Nice."},
    )
    print(f"4. PATCH manual grade      → {r.status_code}  grade={r.json()['grade']}")

    # ── Step 5: callback with a wrong hash ──────────────────────────
    r = client.post(
        f"/v1/submissions/{submission['id']}/grade",
        json={"hash": "not-the-hash", "points": 0, "max_points": 10},
    )
    print(f"5. POST grade (bad hash)   → {r.status_code}  {r.json()['detail']}")

    # ── Step 6: gradebook ───────────────────────────────────────────
    pushed = asyncio.run(dependencies.gradebook.get(exercise.id, student))
    print(f"6. gradebook               → raw_grade={pushed.raw_grade if pushed else None}")

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
