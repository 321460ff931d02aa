"""Grading orchestration: the operations the API and the worker call.

Each operation follows the same shape:

  1. load everything it needs (submission, exercise, round, deviations,
     prior-attempt count) and raise a LookupError subclass if anything
     required is missing; nothing has been modified at that point
  2. apply the lifecycle transition to the in-memory Submission
  3. save it
  4. recompute the student's best score and push it to the gradebook

Step 2 either completes or raises before touching the submission, so a
refused operation never leaves a half-updated record behind.  With the
PostgreSQL repos all steps share one session, committed by the caller's
session_scope().

Sending a submission to its grading backend is split around
the remote call: start_grading() commits WAITING first, then
apply_response() or apply_failure() runs in a fresh unit of work.  No
transaction stays open while the backend works, and an asynchronous
callback arriving in between finds the submission WAITING.

The service does no locking.  The queue hands each submission id to
exactly one worker.  If a callback finishes a submission before the
worker applies its own answer, the worker gets InvalidTransitionError
for ERROR or REJECTED and a harmless re-grade for READY.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from app.core.clock import Clock
from app.core.logging import bind_submission
from app.models.attachment import SubmittedFile
from app.models.course import Exercise, ExerciseRound
from app.models.submission import Submission
from app.repos.attachment_repo import AttachmentStore
from app.repos.course_repo import CourseRepo
from app.repos.gradebook_repo import Gradebook
from app.repos.submission_repo import SubmissionRepo
from app.services import lifecycle
from app.services.best_score import BestScoreAggregator, best_submission, round_total
from app.services.grading_client import (
    GradingBackendError,
    GradingResponse,
    SubmissionRejectedError,
)
from app.services.scoring import ScoringContext

logger = logging.getLogger(__name__)


class SubmissionNotFoundError(LookupError):
    pass


class ExerciseNotFoundError(LookupError):
    pass


class RoundNotFoundError(LookupError):
    pass


@dataclass(frozen=True, slots=True)
class UploadedFile:
    field_key: str
    filename: str
    content: bytes
    mimetype: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class GradingRequest:
    """What the grading backend is sent for one submission."""

    exercise: Exercise
    submission: Submission
    files: list[SubmittedFile]


@dataclass(frozen=True, slots=True)
class ExerciseResult:
    exercise: Exercise
    best: Submission | None
    submission_count: int

    @property
    def grade(self) -> int | None:
        return self.best.grade if self.best is not None else None

    @property
    def passed(self) -> bool:
        return self.grade is not None and self.grade >= self.exercise.points_to_pass


@dataclass(frozen=True, slots=True)
class RoundResult:
    exercise_round: ExerciseRound
    total: int
    max_total: int
    exercises: list[ExerciseResult]


class GradingService:
    def __init__(
        self,
        submissions: SubmissionRepo,
        courses: CourseRepo,
        attachments: AttachmentStore,
        gradebook: Gradebook,
        clock: Clock,
    ) -> None:
        self._submissions = submissions
        self._courses = courses
        self._attachments = attachments
        self._clock = clock
        self._aggregator = BestScoreAggregator(submissions, gradebook)

    # --- lookups ---

    async def get_submission(self, submission_id: UUID) -> Submission:
        submission = await self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(str(submission_id))
        return submission

    async def get_exercise(self, exercise_id: UUID) -> Exercise:
        exercise = await self._courses.get_exercise(exercise_id)
        if exercise is None:
            raise ExerciseNotFoundError(str(exercise_id))
        return exercise

    async def list_files(self, submission_id: UUID) -> list[SubmittedFile]:
        return await self._attachments.list_for_submission(submission_id)

    async def _prior_count(self, submission: Submission) -> int:
        return await self._submissions.count_at_or_before(
            submission.exercise_id,
            submission.submitter_id,
            submission.submission_time,
            excluding_id=submission.id,
        )

    async def attempt_number(self, submission: Submission) -> int:
        """1-based position of the submission among the student's attempts."""
        return await self._prior_count(submission) + 1

    async def _scoring_context(
        self, submission: Submission, exercise: Exercise
    ) -> ScoringContext:
        return ScoringContext(
            exercise=exercise,
            exercise_round=await self._courses.get_round(exercise.round_id),
            # Read at grading time, not submit time.
            prior_submissions=await self._prior_count(submission),
            deadline_deviation=await self._courses.find_deadline_deviation(
                exercise.id, submission.submitter_id
            ),
            limit_deviation=await self._courses.find_submit_limit_deviation(
                exercise.id, submission.submitter_id
            ),
        )

    # --- operations ---

    async def create_submission(
        self,
        exercise_id: UUID,
        submitter_id: UUID,
        submission_data: Any = None,
        files: Iterable[UploadedFile] = (),
    ) -> Submission:
        """Store a new INITIALIZED submission stamped with the current time.

        Over-limit and late submissions are accepted here; they are scored
        accordingly when graded.
        """
        exercise = await self.get_exercise(exercise_id)
        submission = Submission.new(
            exercise_id=exercise.id,
            submitter_id=submitter_id,
            submission_time=self._clock.now(),
            submission_data=submission_data,
        )
        await self._submissions.add(submission)
        for f in files:
            await self._attachments.add(
                SubmittedFile(
                    submission_id=submission.id,
                    field_key=f.field_key,
                    filename=f.filename,
                    content=f.content,
                    mimetype=f.mimetype,
                )
            )
        with bind_submission(submission.id, exercise.id, submitter_id):
            logger.info("Created submission hash=%s", submission.hash)
        return submission

    async def start_grading(self, submission_id: UUID) -> GradingRequest:
        """Move a submission to WAITING and gather what its backend needs.

        The caller commits this before contacting the backend, so a
        callback that arrives while the backend is still answering finds
        the submission WAITING.
        """
        submission = await self.get_submission(submission_id)
        exercise = await self.get_exercise(submission.exercise_id)
        with bind_submission(submission.id, exercise.id, submission.submitter_id):
            lifecycle.mark_waiting(submission)
            await self._submissions.save(submission)
            files = await self._attachments.list_for_submission(submission.id)
            logger.info("Sending to grading backend with %d file(s)", len(files))
        return GradingRequest(exercise=exercise, submission=submission, files=files)

    async def apply_response(
        self, submission_id: UUID, response: GradingResponse | None
    ) -> Submission:
        """Apply a synchronous backend answer.

        None means the backend accepted the submission and will post the
        result to the grading callback; the submission stays as it is.
        """
        if response is None:
            return await self.get_submission(submission_id)
        return await self.grade(
            submission_id,
            response.points,
            response.max_points,
            feedback=response.feedback,
            grading_data=response.grading_data,
        )

    async def apply_failure(
        self, submission_id: UUID, error: GradingBackendError
    ) -> Submission:
        """Rejected content ends in REJECTED, anything else in ERROR."""
        if isinstance(error, SubmissionRejectedError):
            logger.warning("Grading backend rejected submission=%s: %s", submission_id, error)
            return await self.record_rejected(submission_id, error.feedback)
        logger.warning("Grading backend failed for submission=%s: %s", submission_id, error)
        return await self.record_error(submission_id, error.feedback)

    async def grade(
        self,
        submission_id: UUID,
        points: int,
        max_points: int,
        *,
        feedback: str | None = None,
        grading_data: Any = None,
        no_penalties: bool = False,
    ) -> Submission:
        """Apply a grading result and refresh the student's best score."""
        submission = await self.get_submission(submission_id)
        exercise = await self.get_exercise(submission.exercise_id)
        context = await self._scoring_context(submission, exercise)

        with bind_submission(submission.id, exercise.id, submission.submitter_id):
            result = lifecycle.grade(
                submission,
                points,
                max_points,
                feedback,
                context,
                graded_at=self._clock.now(),
                grading_data=grading_data,
                no_penalties=no_penalties,
            )
            await self._submissions.save(submission)
            logger.info(
                "Graded %d/%d -> grade=%d",
                points,
                max_points,
                result.grade,
            )
            await self._aggregator.recompute(exercise.id, submission.submitter_id)
        return submission

    async def record_error(
        self, submission_id: UUID, feedback: str | None = None
    ) -> Submission:
        submission = await self.get_submission(submission_id)
        with bind_submission(submission.id, submission.exercise_id, submission.submitter_id):
            lifecycle.mark_error(submission, feedback)
            await self._submissions.save(submission)
            logger.info("Submission marked error")
        return submission

    async def record_rejected(
        self, submission_id: UUID, feedback: str | None = None
    ) -> Submission:
        submission = await self.get_submission(submission_id)
        with bind_submission(submission.id, submission.exercise_id, submission.submitter_id):
            lifecycle.mark_rejected(submission, feedback)
            await self._submissions.save(submission)
            logger.info("Submission marked rejected")
        return submission

    async def edit_grade(
        self,
        submission_id: UUID,
        new_grade: int,
        *,
        grader_id: UUID,
        assistant_feedback: str | None = None,
    ) -> Submission:
        """Manual grading by course staff on a READY submission."""
        submission = await self.get_submission(submission_id)
        exercise = await self.get_exercise(submission.exercise_id)
        with bind_submission(submission.id, exercise.id, submission.submitter_id):
            lifecycle.set_manual_grade(
                submission,
                new_grade,
                max_points=exercise.max_points,
                grader_id=grader_id,
                graded_at=self._clock.now(),
                assistant_feedback=assistant_feedback,
            )
            await self._submissions.save(submission)
            logger.info("Grade set manually to %d by grader=%s", new_grade, grader_id)
            await self._aggregator.recompute(exercise.id, submission.submitter_id)
        return submission

    async def delete_submission(
        self, submission_id: UUID, *, update_gradebook: bool = True
    ) -> None:
        submission = await self.get_submission(submission_id)
        with bind_submission(submission.id, submission.exercise_id, submission.submitter_id):
            removed = await self._attachments.delete_for_submission(submission.id)
            await self._submissions.delete(submission.id)
            logger.info("Deleted submission and %d attached file(s)", removed)
            if update_gradebook:
                await self._aggregator.recompute(
                    submission.exercise_id, submission.submitter_id
                )

    # --- results ---

    async def exercise_result(self, exercise_id: UUID, student_id: UUID) -> ExerciseResult:
        exercise = await self.get_exercise(exercise_id)
        submissions = await self._submissions.list_for_student(exercise.id, student_id)
        return ExerciseResult(
            exercise=exercise,
            best=best_submission(submissions),
            submission_count=len(submissions),
        )

    async def round_result(self, round_id: UUID, student_id: UUID) -> RoundResult:
        exercise_round = await self._courses.get_round(round_id)
        if exercise_round is None:
            raise RoundNotFoundError(str(round_id))

        lobjects = await self._courses.list_learning_objects(round_id)
        results = [
            await self.exercise_result(lo.id, student_id)
            for lo in lobjects
            if lo.is_submittable
        ]
        return RoundResult(
            exercise_round=exercise_round,
            total=round_total(lobjects, {r.exercise.id: r.grade for r in results}),
            max_total=sum(r.exercise.max_points for r in results),
            exercises=results,
        )
