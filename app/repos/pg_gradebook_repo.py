"""PostgreSQL implementation of the Gradebook collaborator."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import GradebookGradeRow
from app.models.gradebook import GradebookGrade


class PgGradebook:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def push(self, grade: GradebookGrade) -> None:
        values = {
            "exercise_id": grade.exercise_id,
            "student_id": grade.student_id,
            "raw_grade": grade.raw_grade,
            "modified_by": grade.modified_by,
            "date_graded": grade.date_graded,
            "date_submitted": grade.date_submitted,
        }
        # Upsert keeps repeated pushes idempotent.
        stmt = (
            insert(GradebookGradeRow)
            .values(**values)
            .on_conflict_do_update(
                index_elements=["exercise_id", "student_id"],
                set_={k: v for k, v in values.items() if k not in ("exercise_id", "student_id")},
            )
        )
        await self._session.execute(stmt)

    async def clear(self, exercise_id: UUID, student_id: UUID) -> None:
        stmt = (
            delete(GradebookGradeRow)
            .where(GradebookGradeRow.exercise_id == exercise_id)
            .where(GradebookGradeRow.student_id == student_id)
        )
        await self._session.execute(stmt)

    async def get(self, exercise_id: UUID, student_id: UUID) -> GradebookGrade | None:
        row = await self._session.get(GradebookGradeRow, (exercise_id, student_id))
        if row is None:
            return None
        return GradebookGrade(
            exercise_id=row.exercise_id,
            student_id=row.student_id,
            raw_grade=row.raw_grade,
            modified_by=row.modified_by,
            date_graded=row.date_graded,
            date_submitted=row.date_submitted,
        )
