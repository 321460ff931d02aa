"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import (
    CategoryRow,
    DeadlineDeviationRow,
    ExerciseRoundRow,
    LearningObjectRow,
    SubmitLimitDeviationRow,
)
from app.models.course import (
    Category,
    Chapter,
    Exercise,
    ExerciseRound,
    LearningObject,
    LearningObjectKind,
)
from app.models.deviation import DeadlineDeviation, SubmitLimitDeviation


class PgCourseRepo:
    """Satisfies the CourseRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_round(self, round_id: UUID) -> ExerciseRound | None:
        row = await self._session.get(ExerciseRoundRow, round_id)
        if row is None:
            return None
        return ExerciseRound(
            id=row.id,
            name=row.name,
            opening_time=row.opening_time,
            closing_time=row.closing_time,
            late_submissions_allowed=row.late_submissions_allowed,
            late_submission_deadline=row.late_submission_deadline,
            late_submission_penalty=row.late_submission_penalty,
        )

    async def get_category(self, category_id: UUID) -> Category | None:
        row = await self._session.get(CategoryRow, category_id)
        if row is None:
            return None
        return Category(
            id=row.id,
            name=row.name,
            points_to_pass=row.points_to_pass,
            status=row.status,
        )

    async def get_learning_object(self, lobject_id: UUID) -> LearningObject | None:
        row = await self._session.get(LearningObjectRow, lobject_id)
        if row is None:
            return None
        return _row_to_learning_object(row)

    async def get_exercise(self, exercise_id: UUID) -> Exercise | None:
        lobject = await self.get_learning_object(exercise_id)
        return lobject if isinstance(lobject, Exercise) else None

    async def list_learning_objects(self, round_id: UUID) -> list[LearningObject]:
        stmt = (
            select(LearningObjectRow)
            .where(LearningObjectRow.round_id == round_id)
            .order_by(LearningObjectRow.ordernum)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_learning_object(r) for r in rows]

    async def find_deadline_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> DeadlineDeviation | None:
        row = await self._session.get(DeadlineDeviationRow, (exercise_id, submitter_id))
        if row is None:
            return None
        return DeadlineDeviation(
            exercise_id=row.exercise_id,
            submitter_id=row.submitter_id,
            new_deadline=row.new_deadline,
            use_late_penalty=row.use_late_penalty,
        )

    async def find_submit_limit_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> SubmitLimitDeviation | None:
        row = await self._session.get(
            SubmitLimitDeviationRow, (exercise_id, submitter_id)
        )
        if row is None:
            return None
        return SubmitLimitDeviation(
            exercise_id=row.exercise_id,
            submitter_id=row.submitter_id,
            extra_submissions=row.extra_submissions,
        )


def _row_to_learning_object(row: LearningObjectRow) -> LearningObject:
    if LearningObjectKind(row.kind) is LearningObjectKind.CHAPTER:
        return Chapter(
            id=row.id,
            round_id=row.round_id,
            category_id=row.category_id,
            name=row.name,
            service_url=row.service_url,
            order=row.ordernum,
        )
    return Exercise(
        id=row.id,
        round_id=row.round_id,
        category_id=row.category_id,
        name=row.name,
        max_points=row.max_points or 0,
        points_to_pass=row.points_to_pass or 0,
        max_submissions=row.max_submissions or 0,
        service_url=row.service_url,
        order=row.ordernum,
    )
