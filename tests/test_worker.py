"""Worker job processing against the shared in-memory stores."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from uuid import uuid4

import pytest

from app import worker
from app.api import dependencies
from app.models.submission import SubmissionStatus
from app.services.grading_client import GradingResponse, GradingServerError
from app.services.grading_service import GradingService
from app.services.task_queue import GradingJob
from app.worker import process_job
from tests.conftest import ScriptedGradingBackend, seed_exercise, seed_round


def _create(clock) -> GradingJob:
    exercise = seed_exercise(seed_round())

    async def _run():
        async with dependencies.grading_service_scope() as service:
            return await service.create_submission(exercise.id, uuid4())

    sub = asyncio.run(_run())
    return GradingJob.new(sub.id)


def test_process_job_grades_submission(clock) -> None:
    job = _create(clock)
    backend = ScriptedGradingBackend(GradingResponse(points=5, max_points=10, feedback=None))
    assert asyncio.run(process_job(job, backend)) is True

    stored = asyncio.run(dependencies.submission_repo.get(job.submission_id))
    assert stored.status is SubmissionStatus.READY
    assert stored.grade == 50


def test_process_job_backend_failure_marks_error(clock) -> None:
    job = _create(clock)
    backend = ScriptedGradingBackend(error=GradingServerError("boom"))
    assert asyncio.run(process_job(job, backend)) is True

    stored = asyncio.run(dependencies.submission_repo.get(job.submission_id))
    assert stored.status is SubmissionStatus.ERROR


def test_process_job_for_deleted_submission_is_dropped(clock) -> None:
    job = GradingJob.new(uuid4())
    assert asyncio.run(process_job(job, ScriptedGradingBackend())) is False


def test_process_job_twice_is_dropped(clock) -> None:
    job = _create(clock)
    assert asyncio.run(process_job(job, ScriptedGradingBackend())) is True
    assert asyncio.run(process_job(job, ScriptedGradingBackend())) is False


# ---------------------------------------------------------------------------
# Grading callback racing the worker
#
# The worker's scopes below only publish submission writes when they exit
# cleanly, the way a database transaction commits.  The grading callback
# runs through the API's own scope and sees committed state only.
# ---------------------------------------------------------------------------


class _StagedSubmissions:
    """Submission writes stay private until the unit of work commits."""

    def __init__(self, committed) -> None:
        self._committed = committed
        self._pending: dict = {}

    async def get(self, submission_id):
        if submission_id in self._pending:
            return replace(self._pending[submission_id])
        return await self._committed.get(submission_id)

    async def save(self, submission) -> None:
        self._pending[submission.id] = replace(submission)

    async def list_for_student(self, exercise_id, submitter_id):
        found = {
            s.id: s for s in await self._committed.list_for_student(exercise_id, submitter_id)
        }
        for s in self._pending.values():
            if s.exercise_id == exercise_id and s.submitter_id == submitter_id:
                found[s.id] = replace(s)
        return sorted(found.values(), key=lambda s: s.submission_time)

    async def count_at_or_before(self, *args, **kwargs) -> int:
        return await self._committed.count_at_or_before(*args, **kwargs)

    async def commit(self) -> None:
        for s in self._pending.values():
            await self._committed.save(s)
        self._pending.clear()


@pytest.fixture
def open_scopes(monkeypatch: pytest.MonkeyPatch) -> list:
    """Run the worker on staged scopes; the list holds the ones still open."""
    scopes: list = []

    @asynccontextmanager
    async def staged_scope():
        staged = _StagedSubmissions(dependencies.submission_repo)
        scopes.append(staged)
        try:
            yield GradingService(
                staged,
                dependencies.course_repo,
                dependencies.attachment_store,
                dependencies.gradebook,
                dependencies.clock,
            )
            await staged.commit()
        finally:
            scopes.remove(staged)

    monkeypatch.setattr(worker, "grading_service_scope", staged_scope)
    return scopes


class _CallbackDuringGrading:
    """Backend that posts to the grading callback before answering the worker."""

    def __init__(self, open_scopes: list, callback, answer=None) -> None:
        self.open_scopes = open_scopes
        self.callback = callback
        self.answer = answer
        self.scopes_open_during_call: int | None = None
        self.callback_result = None

    async def grade(self, exercise, submission, files):
        self.scopes_open_during_call = len(self.open_scopes)
        async with dependencies.grading_service_scope() as service:
            self.callback_result = await self.callback(service, submission.id)
        return self.answer


def test_callback_during_backend_call_sees_waiting(clock, open_scopes: list) -> None:
    job = _create(clock)

    async def callback(service, submission_id):
        return await service.grade(submission_id, 9, 10)

    backend = _CallbackDuringGrading(open_scopes, callback)
    assert asyncio.run(worker.process_job(job, backend)) is True

    assert backend.scopes_open_during_call == 0
    assert backend.callback_result.status is SubmissionStatus.READY
    stored = asyncio.run(dependencies.submission_repo.get(job.submission_id))
    assert stored.status is SubmissionStatus.READY
    assert stored.grade == 90


def test_worker_answer_after_error_callback_is_dropped(clock, open_scopes: list) -> None:
    job = _create(clock)

    async def callback(service, submission_id):
        return await service.record_error(submission_id, "grader crashed")

    backend = _CallbackDuringGrading(
        open_scopes,
        callback,
        answer=GradingResponse(points=10, max_points=10, feedback=None),
    )
    assert asyncio.run(worker.process_job(job, backend)) is False

    stored = asyncio.run(dependencies.submission_repo.get(job.submission_id))
    assert stored.status is SubmissionStatus.ERROR
    assert stored.grade is None
    assert open_scopes == []
