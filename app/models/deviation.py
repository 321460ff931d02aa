from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class DeadlineDeviation:
    """Per-student deadline extension for one exercise.

    Once present it replaces the round's timing for that student entirely.
    """

    exercise_id: UUID
    submitter_id: UUID
    new_deadline: int
    use_late_penalty: bool = False


@dataclass(frozen=True, slots=True)
class SubmitLimitDeviation:
    """Extra attempts granted to one student for one exercise."""

    exercise_id: UUID
    submitter_id: UUID
    extra_submissions: int
