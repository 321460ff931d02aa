"""Deadline classification for submissions.

Order of precedence:
  1. at or before the round's closing time        -> ON_TIME
  2. a deviation exists and the time is within it -> its own verdict
     (LATE_WITH_PENALTY if it keeps the penalty, else ON_TIME); round
     lateness rules are not consulted for that student
  3. within the round's late-submission window    -> LATE_WITH_PENALTY
  4. anything else                                -> LATE_REJECTED

No calendar validation is done; any integer instant is accepted.
"""

from __future__ import annotations

from app.models.course import ExerciseRound
from app.models.deviation import DeadlineDeviation
from app.models.submission import Lateness


def is_late_submission_open(exercise_round: ExerciseRound, when: int) -> bool:
    return (
        exercise_round.late_submissions_allowed
        and exercise_round.closing_time < when <= exercise_round.late_submission_deadline
    )


def classify(
    submission_time: int,
    exercise_round: ExerciseRound | None,
    deviation: DeadlineDeviation | None = None,
) -> Lateness:
    # A missing round means there is no deadline to miss.
    if exercise_round is None or submission_time <= exercise_round.closing_time:
        return Lateness.ON_TIME

    if deviation is not None and submission_time <= deviation.new_deadline:
        if deviation.use_late_penalty:
            return Lateness.LATE_WITH_PENALTY
        return Lateness.ON_TIME

    if is_late_submission_open(exercise_round, submission_time):
        return Lateness.LATE_WITH_PENALTY

    return Lateness.LATE_REJECTED
