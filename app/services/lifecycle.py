"""Submission lifecycle state machine.

  INITIALIZED --dispatch--> WAITING --grade-----> READY --grade (re-grade)--> READY
                                    --error-----> ERROR
                                    --reject----> REJECTED

ERROR and REJECTED are final for that submission; the student retries by
submitting again.  Deletion is allowed from every state and is handled by
the grading service, not here.

Every function validates the transition before touching the submission,
so a refused transition leaves the record exactly as it was.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from app.core.metrics import GRADING_OUTCOMES, LATE_PENALTIES, SUBMISSION_LIMIT_EXCEEDED
from app.models.submission import Lateness, Submission, SubmissionStatus
from app.services.scoring import ScoreResult, ScoringContext, set_points

logger = logging.getLogger(__name__)

S = SubmissionStatus

TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    S.INITIALIZED: frozenset({S.WAITING}),
    S.WAITING: frozenset({S.READY, S.ERROR, S.REJECTED}),
    S.READY: frozenset({S.READY}),
    S.ERROR: frozenset(),
    S.REJECTED: frozenset(),
}


class InvalidTransitionError(ValueError):
    def __init__(self, current: SubmissionStatus, target: SubmissionStatus) -> None:
        super().__init__(f"cannot move submission from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    return target in TRANSITIONS[current]


def _require(submission: Submission, target: SubmissionStatus) -> None:
    if not can_transition(submission.status, target):
        logger.warning(
            "Refused transition %s -> %s for submission=%s",
            submission.status.value,
            target.value,
            submission.id,
        )
        raise InvalidTransitionError(submission.status, target)


def mark_waiting(submission: Submission) -> None:
    _require(submission, S.WAITING)
    submission.status = S.WAITING


def grade(
    submission: Submission,
    service_points: int,
    service_max_points: int,
    feedback: str | None,
    context: ScoringContext,
    *,
    graded_at: int,
    grading_data: Any = None,
    no_penalties: bool = False,
) -> ScoreResult:
    """WAITING/READY -> READY, scoring the service result in full."""
    _require(submission, S.READY)

    result = set_points(
        submission,
        service_points,
        service_max_points,
        context,
        no_penalties=no_penalties,
    )
    submission.status = S.READY
    submission.feedback = feedback
    # An automatic grade replaces any earlier manual one.
    submission.grader_id = None
    submission.grading_time = graded_at
    submission.grading_data = grading_data

    GRADING_OUTCOMES.labels(outcome=S.READY.value).inc()
    if result.lateness is not None and result.lateness is not Lateness.ON_TIME:
        LATE_PENALTIES.labels(lateness=result.lateness.value).inc()
    if result.limit_exceeded:
        SUBMISSION_LIMIT_EXCEEDED.inc()
        logger.info(
            "Submission %s is attempt %d, over the limit; graded 0",
            submission.id,
            result.attempt,
        )
    return result


def mark_error(submission: Submission, feedback: str | None = None) -> None:
    """WAITING -> ERROR.  Score fields are left untouched."""
    _require(submission, S.ERROR)
    submission.status = S.ERROR
    if feedback is not None:
        submission.feedback = feedback
    GRADING_OUTCOMES.labels(outcome=S.ERROR.value).inc()


def mark_rejected(submission: Submission, feedback: str | None = None) -> None:
    """WAITING -> REJECTED.  Score fields are left untouched."""
    _require(submission, S.REJECTED)
    submission.status = S.REJECTED
    if feedback is not None:
        submission.feedback = feedback
    GRADING_OUTCOMES.labels(outcome=S.REJECTED.value).inc()


def set_manual_grade(
    submission: Submission,
    new_grade: int,
    *,
    max_points: int,
    grader_id: UUID,
    graded_at: int,
    assistant_feedback: str | None = None,
) -> None:
    """Overwrite the grade of a READY submission by hand.

    Scaling, deadlines and attempt limits are not applied.
    """
    if not submission.is_graded:
        raise InvalidTransitionError(submission.status, S.READY)
    if not 0 <= new_grade <= max_points:
        raise ValueError(f"grade must be between 0 and {max_points} (got {new_grade})")

    submission.grade = new_grade
    submission.grader_id = grader_id
    submission.grading_time = graded_at
    if assistant_feedback is not None:
        submission.assistant_feedback = assistant_feedback
