from __future__ import annotations

import enum
import secrets
import string
from dataclasses import dataclass
from typing import Any
from uuid import UUID, uuid4

from app.models.gradebook import GradebookGrade

_HASH_ALPHABET = string.digits + string.ascii_letters


class SubmissionStatus(str, enum.Enum):
    INITIALIZED = "initialized"  # not sent to the grading service yet
    WAITING = "waiting"  # sent for grading
    READY = "ready"  # graded
    ERROR = "error"  # grading infrastructure failed
    REJECTED = "rejected"  # content judged invalid (missing fields etc.)


class Lateness(str, enum.Enum):
    ON_TIME = "on_time"
    LATE_WITH_PENALTY = "late_with_penalty"
    LATE_REJECTED = "late_rejected"


def random_hash(length: int = 32) -> str:
    return "".join(secrets.choice(_HASH_ALPHABET) for _ in range(length))


@dataclass(slots=True)
class Submission:
    """One submission to an exercise; the only mutable record in grading.

    ``grade`` is set only while status is READY.  ``late_penalty_applied``
    keeps the stored ratio semantics: None for no penalty, the round's
    ratio for a penalised late submission, and 1 for a submission past
    every deadline.  ``lateness`` records which of those cases applied so
    a configured ratio of 1 is not mistaken for a rejection.
    """

    id: UUID
    exercise_id: UUID
    submitter_id: UUID
    submission_time: int
    hash: str
    status: SubmissionStatus = SubmissionStatus.INITIALIZED
    service_points: int = 0
    service_max_points: int = 0
    grade: int | None = None
    late_penalty_applied: float | None = None
    lateness: Lateness | None = None
    grader_id: UUID | None = None
    grading_time: int | None = None
    feedback: str | None = None
    assistant_feedback: str | None = None
    submission_data: Any = None
    grading_data: Any = None

    @staticmethod
    def new(
        *,
        exercise_id: UUID,
        submitter_id: UUID,
        submission_time: int,
        submission_data: Any = None,
        status: SubmissionStatus = SubmissionStatus.INITIALIZED,
    ) -> Submission:
        return Submission(
            id=uuid4(),
            exercise_id=exercise_id,
            submitter_id=submitter_id,
            submission_time=submission_time,
            hash=random_hash(),
            status=status,
            submission_data=submission_data,
        )

    @property
    def is_graded(self) -> bool:
        return self.status is SubmissionStatus.READY

    @property
    def late_penalty_percent(self) -> int | None:
        if self.late_penalty_applied is None:
            return None
        return int(round(self.late_penalty_applied * 100))

    def grade_object(self) -> GradebookGrade:
        """Gradebook view of this submission.

        The student is recorded as the modifier when grading was automatic.
        """
        return GradebookGrade(
            exercise_id=self.exercise_id,
            student_id=self.submitter_id,
            raw_grade=self.grade if self.grade is not None else 0,
            modified_by=self.grader_id or self.submitter_id,
            date_graded=self.grading_time or 0,
            date_submitted=self.submission_time,
        )
