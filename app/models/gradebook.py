from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class GradebookGrade:
    """Grade pushed to the host gradebook for one student and exercise."""

    exercise_id: UUID
    student_id: UUID
    raw_grade: int
    modified_by: UUID  # grader, or the student for automatic grading
    date_graded: int
    date_submitted: int
