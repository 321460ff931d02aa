from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from app.models.course import Exercise
from app.models.deviation import SubmitLimitDeviation
from app.models.submission import Submission


def count_prior_or_equal(
    submissions: Iterable[Submission],
    *,
    exercise_id: UUID,
    submitter_id: UUID,
    at_or_before: int,
    excluding_id: UUID | None = None,
) -> int:
    """Count the student's submissions to the exercise made at or before a time.

    Ordering is by submission time only: submissions sharing a timestamp
    all count, whatever order they were stored in.
    """
    return sum(
        1
        for s in submissions
        if s.exercise_id == exercise_id
        and s.submitter_id == submitter_id
        and s.submission_time <= at_or_before
        and s.id != excluding_id
    )


def ordinal(submission: Submission, submissions: Iterable[Submission]) -> int:
    """The "Nth submission" number of a submission, itself included."""
    return (
        count_prior_or_equal(
            submissions,
            exercise_id=submission.exercise_id,
            submitter_id=submission.submitter_id,
            at_or_before=submission.submission_time,
            excluding_id=submission.id,
        )
        + 1
    )


def max_submissions_for_student(
    exercise: Exercise, deviation: SubmitLimitDeviation | None = None
) -> int:
    """Attempt limit for one student; 0 means unlimited and stays unlimited."""
    if exercise.max_submissions <= 0:
        return 0
    if deviation is None:
        return exercise.max_submissions
    return exercise.max_submissions + deviation.extra_submissions


def exceeds_limit(count: int, limit: int) -> bool:
    return limit > 0 and count > limit
