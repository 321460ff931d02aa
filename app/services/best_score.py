"""Best-score aggregation.

A student's grade for an exercise is the highest grade among their READY
submissions; with none READY there is no grade.  It is recomputed from
the stored submissions after every change that could move it (grading,
manual edits, deletion) and pushed to the gradebook before control
returns to the caller.  Nothing is cached between recomputations.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from app.core.metrics import GRADEBOOK_PUSHES
from app.models.course import LearningObject
from app.models.gradebook import GradebookGrade
from app.models.submission import Submission
from app.repos.gradebook_repo import Gradebook
from app.repos.submission_repo import SubmissionRepo

logger = logging.getLogger(__name__)


def best_submission(submissions: Iterable[Submission]) -> Submission | None:
    """Highest-graded READY submission; the earliest one wins a tie."""
    best: Submission | None = None
    for s in submissions:
        if not s.is_graded or s.grade is None:
            continue
        if (
            best is None
            or s.grade > best.grade  # type: ignore[operator]
            or (s.grade == best.grade and s.submission_time < best.submission_time)
        ):
            best = s
    return best


def best_grade(submissions: Iterable[Submission]) -> int | None:
    best = best_submission(submissions)
    return best.grade if best is not None else None


def round_total(
    learning_objects: Iterable[LearningObject],
    best_by_exercise: dict[UUID, int | None],
) -> int:
    """Sum of best grades over the gradable objects of a round."""
    return sum(
        best_by_exercise.get(lo.id) or 0 for lo in learning_objects if lo.is_submittable
    )


class BestScoreAggregator:
    def __init__(self, submissions: SubmissionRepo, gradebook: Gradebook) -> None:
        self._submissions = submissions
        self._gradebook = gradebook

    async def recompute(self, exercise_id: UUID, student_id: UUID) -> GradebookGrade | None:
        """Re-derive the student's exercise grade and push it to the gradebook.

        Pushes unconditionally, even when nothing changed; the gradebook
        treats repeated identical pushes as no-ops.
        """
        submissions = await self._submissions.list_for_student(exercise_id, student_id)
        best = best_submission(submissions)
        GRADEBOOK_PUSHES.inc()
        if best is None:
            logger.info(
                "No graded submission left for exercise=%s student=%s",
                exercise_id,
                student_id,
            )
            await self._gradebook.clear(exercise_id, student_id)
            return None

        grade = best.grade_object()
        await self._gradebook.push(grade)
        logger.debug(
            "Pushed best grade=%d for exercise=%s student=%s",
            grade.raw_grade,
            exercise_id,
            student_id,
        )
        return grade
