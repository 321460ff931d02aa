"""Scoring engine: raw grading-service points -> final exercise grade.

Steps, in order:

  1. scale service points onto the exercise maximum
  2. unless penalties are waived, classify lateness and reduce:
       adjusted -= adjusted * penalty
     with penalty = round ratio (late) or 1 (past every deadline)
  3. round half away from zero and bound to [0, exercise max points]
  4. zero the grade when the attempt number exceeds the student's limit

Everything the engine needs arrives resolved in a ScoringContext, so the
computation itself does no I/O.  The prior-submission count is read by the
caller from persistence in one consistent query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.models.course import Exercise, ExerciseRound
from app.models.deviation import DeadlineDeviation, SubmitLimitDeviation
from app.models.submission import Lateness, Submission
from app.services import deadline_policy, scaling_policy, submission_limit

logger = logging.getLogger(__name__)

# Stored in late_penalty_applied for submissions past every deadline.
FULL_PENALTY = 1.0


@dataclass(frozen=True, slots=True)
class ScoringContext:
    exercise: Exercise
    exercise_round: ExerciseRound | None
    prior_submissions: int  # at or before this one, excluding itself
    deadline_deviation: DeadlineDeviation | None = None
    limit_deviation: SubmitLimitDeviation | None = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    service_points: int
    service_max_points: int
    lateness: Lateness | None  # None when penalties were waived
    late_penalty_applied: float | None
    adjusted: float
    attempt: int
    limit_exceeded: bool
    grade: int


def compute_score(
    submission_time: int,
    service_points: int,
    service_max_points: int,
    context: ScoringContext,
    *,
    no_penalties: bool = False,
) -> ScoreResult:
    adjusted = scaling_policy.scale(
        service_points, service_max_points, context.exercise.max_points
    )

    lateness: Lateness | None = None
    penalty: float | None = None
    if not no_penalties:
        lateness = deadline_policy.classify(
            submission_time, context.exercise_round, context.deadline_deviation
        )
        if lateness is Lateness.LATE_WITH_PENALTY:
            assert context.exercise_round is not None
            penalty = context.exercise_round.late_submission_penalty
        elif lateness is Lateness.LATE_REJECTED:
            penalty = FULL_PENALTY
        if penalty is not None:
            adjusted -= adjusted * penalty

    rounded = scaling_policy.round_half_away_from_zero(adjusted)
    # Over-reporting services can push past the maximum; the grade cannot.
    rounded = min(max(rounded, 0), context.exercise.max_points)

    attempt = context.prior_submissions + 1
    limit = submission_limit.max_submissions_for_student(
        context.exercise, context.limit_deviation
    )
    limit_exceeded = submission_limit.exceeds_limit(attempt, limit)

    return ScoreResult(
        service_points=service_points,
        service_max_points=service_max_points,
        lateness=lateness,
        late_penalty_applied=penalty,
        adjusted=adjusted,
        attempt=attempt,
        limit_exceeded=limit_exceeded,
        grade=0 if limit_exceeded else rounded,
    )


def set_points(
    submission: Submission,
    service_points: int,
    service_max_points: int,
    context: ScoringContext,
    *,
    no_penalties: bool = False,
) -> ScoreResult:
    """Score the submission and write the result onto it.

    The result is computed in full before any field is assigned, so the
    submission is never observed half-scored.  Persisting is up to the
    caller.
    """
    result = compute_score(
        submission.submission_time,
        service_points,
        service_max_points,
        context,
        no_penalties=no_penalties,
    )

    submission.service_points = result.service_points
    submission.service_max_points = result.service_max_points
    submission.lateness = result.lateness
    submission.late_penalty_applied = result.late_penalty_applied
    submission.grade = result.grade

    logger.debug(
        "Scored %d/%d -> %d (lateness=%s attempt=%d limit_exceeded=%s)",
        service_points,
        service_max_points,
        result.grade,
        result.lateness.value if result.lateness else "waived",
        result.attempt,
        result.limit_exceeded,
    )
    return result
