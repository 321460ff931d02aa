from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.api import dependencies
from app.core.clock import FixedClock
from app.main import app
from app.models.attachment import SubmittedFile
from app.models.course import Category, Chapter, Exercise, ExerciseRound
from app.models.submission import Submission, SubmissionStatus
from app.services.grading_client import GradingBackendError, GradingResponse
from app.services.task_queue import grading_queue

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# 2026-01-15 12:00:00 UTC; rounds below close one day later.
NOW = 1_768_478_400
DAY = 86_400


@pytest.fixture(autouse=True)
def reset_grading_state() -> None:
    """Empty the shared in-memory stores between tests."""
    dependencies.submission_repo._by_id.clear()
    dependencies.course_repo.clear()
    dependencies.attachment_store._files.clear()
    dependencies.gradebook._grades.clear()
    dependencies.gradebook.pushes.clear()


@pytest.fixture(autouse=True)
def reset_grading_queue() -> None:
    if hasattr(grading_queue, "clear"):
        grading_queue.clear()  # type: ignore[union-attr]


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FixedClock:
    """Pin the time every GradingService built by the app sees."""
    fixed = FixedClock(NOW)
    monkeypatch.setattr(dependencies, "clock", fixed)
    return fixed


@pytest.fixture
def client(clock: FixedClock) -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Course seeding helpers
# ---------------------------------------------------------------------------


def seed_round(
    *,
    closing_time: int = NOW + DAY,
    late_submissions_allowed: bool = True,
    late_submission_deadline: int | None = None,
    late_submission_penalty: float = 0.5,
) -> ExerciseRound:
    exercise_round = ExerciseRound.new(
        name="Round 1",
        opening_time=NOW - 7 * DAY,
        closing_time=closing_time,
        late_submissions_allowed=late_submissions_allowed,
        late_submission_deadline=(
            late_submission_deadline
            if late_submission_deadline is not None
            else closing_time + 7 * DAY
        ),
        late_submission_penalty=late_submission_penalty,
    )
    dependencies.course_repo.add_round(exercise_round)
    return exercise_round


def seed_exercise(
    exercise_round: ExerciseRound,
    *,
    max_points: int = 100,
    max_submissions: int = 10,
    points_to_pass: int = 0,
    order: int = 0,
) -> Exercise:
    category = Category.new(name="Exercises")
    dependencies.course_repo.add_category(category)
    exercise = Exercise.new(
        round_id=exercise_round.id,
        category_id=category.id,
        name=f"Exercise {order}",
        max_points=max_points,
        points_to_pass=points_to_pass,
        max_submissions=max_submissions,
        service_url="http://grader.test/exercise",
        order=order,
    )
    dependencies.course_repo.add_learning_object(exercise)
    return exercise


def seed_chapter(exercise_round: ExerciseRound, *, order: int = 0) -> Chapter:
    chapter = Chapter.new(
        round_id=exercise_round.id,
        category_id=uuid4(),
        name="Reading",
        order=order,
    )
    dependencies.course_repo.add_learning_object(chapter)
    return chapter


# ---------------------------------------------------------------------------
# Grading backend double
# ---------------------------------------------------------------------------


class ScriptedGradingBackend:
    """GradingBackend returning a fixed response, or raising a fixed error."""

    def __init__(
        self,
        response: GradingResponse | None = None,
        error: GradingBackendError | None = None,
    ) -> None:
        self.response = response
        self.error = error
        self.calls: list[tuple[UUID, list[SubmittedFile]]] = []

    async def grade(
        self,
        exercise: Exercise,
        submission: Submission,
        files: list[SubmittedFile],
    ) -> GradingResponse | None:
        self.calls.append((submission.id, files))
        if self.error is not None:
            raise self.error
        return self.response


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def mark_waiting(submission_id: str) -> None:
    """What the worker does before it calls the grading backend."""

    async def _run() -> None:
        sub = await dependencies.submission_repo.get(UUID(submission_id))
        sub.status = SubmissionStatus.WAITING
        await dependencies.submission_repo.save(sub)

    asyncio.run(_run())


def submit(client: TestClient, exercise_id: UUID, student_id: UUID, **kwargs):
    return client.post(
        f"/v1/exercises/{exercise_id}/submissions",
        params={"submitter_id": str(student_id)},
        **kwargs,
    )


def submit_waiting(client: TestClient, exercise: Exercise, student_id: UUID) -> dict:
    """Create a submission over HTTP and move it to WAITING."""
    data = submit(client, exercise.id, student_id, data={"answer": "42"}).json()
    mark_waiting(data["id"])
    return data


def post_grade(client: TestClient, submission: dict, **body):
    """Grading backend callback carrying the submission's own hash."""
    return client.post(
        f"/v1/submissions/{submission['id']}/grade",
        json={"hash": submission["hash"], **body},
    )
