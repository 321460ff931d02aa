from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.gradebook import GradebookGrade


class Gradebook(Protocol):
    """The host platform's gradebook.  Pushing the same grade twice is harmless."""

    async def push(self, grade: GradebookGrade) -> None: ...
    async def clear(self, exercise_id: UUID, student_id: UUID) -> None: ...
    async def get(self, exercise_id: UUID, student_id: UUID) -> GradebookGrade | None: ...


class InMemoryGradebook:
    def __init__(self) -> None:
        self._grades: dict[tuple[UUID, UUID], GradebookGrade] = {}
        self.pushes: list[GradebookGrade] = []

    async def push(self, grade: GradebookGrade) -> None:
        self._grades[(grade.exercise_id, grade.student_id)] = grade
        self.pushes.append(grade)

    async def clear(self, exercise_id: UUID, student_id: UUID) -> None:
        self._grades.pop((exercise_id, student_id), None)

    async def get(self, exercise_id: UUID, student_id: UUID) -> GradebookGrade | None:
        return self._grades.get((exercise_id, student_id))
