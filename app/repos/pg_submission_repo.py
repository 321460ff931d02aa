"""PostgreSQL implementation of SubmissionRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import SubmissionRow
from app.models.submission import Lateness, Submission, SubmissionStatus
from app.services.payload import decode_payload, encode_payload


class PgSubmissionRepo:
    """Satisfies the SubmissionRepo Protocol using PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, submission_id: UUID) -> Submission | None:
        row = await self._session.get(SubmissionRow, submission_id)
        if row is None:
            return None
        return _row_to_submission(row)

    async def add(self, submission: Submission) -> None:
        row = SubmissionRow(id=submission.id)
        _copy_to_row(submission, row)
        self._session.add(row)
        await self._session.flush()

    async def save(self, submission: Submission) -> None:
        row = await self._session.get(SubmissionRow, submission.id)
        if row is None:
            raise KeyError("submission not found")
        _copy_to_row(submission, row)
        await self._session.flush()

    async def delete(self, submission_id: UUID) -> bool:
        stmt = delete(SubmissionRow).where(SubmissionRow.id == submission_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def list_for_student(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> list[Submission]:
        stmt = (
            select(SubmissionRow)
            .where(SubmissionRow.exercise_id == exercise_id)
            .where(SubmissionRow.submitter_id == submitter_id)
            .order_by(SubmissionRow.submission_time)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_submission(r) for r in rows]

    async def count_at_or_before(
        self,
        exercise_id: UUID,
        submitter_id: UUID,
        at: int,
        excluding_id: UUID | None = None,
    ) -> int:
        stmt = (
            select(func.count(SubmissionRow.id))
            .where(SubmissionRow.exercise_id == exercise_id)
            .where(SubmissionRow.submitter_id == submitter_id)
            .where(SubmissionRow.submission_time <= at)
        )
        if excluding_id is not None:
            stmt = stmt.where(SubmissionRow.id != excluding_id)
        return (await self._session.execute(stmt)).scalar_one()


def _copy_to_row(s: Submission, row: SubmissionRow) -> None:
    row.exercise_id = s.exercise_id
    row.submitter_id = s.submitter_id
    row.submission_time = s.submission_time
    row.hash = s.hash
    row.status = s.status.value
    row.service_points = s.service_points
    row.service_max_points = s.service_max_points
    row.grade = s.grade
    row.late_penalty_applied = s.late_penalty_applied
    row.lateness = s.lateness.value if s.lateness is not None else None
    row.grader_id = s.grader_id
    row.grading_time = s.grading_time
    row.feedback = s.feedback
    row.assistant_feedback = s.assistant_feedback
    row.submission_data = encode_payload(s.submission_data)
    row.grading_data = encode_payload(s.grading_data)


def _row_to_submission(row: SubmissionRow) -> Submission:
    return Submission(
        id=row.id,
        exercise_id=row.exercise_id,
        submitter_id=row.submitter_id,
        submission_time=row.submission_time,
        hash=row.hash,
        status=SubmissionStatus(row.status),
        service_points=row.service_points,
        service_max_points=row.service_max_points,
        grade=row.grade,
        late_penalty_applied=row.late_penalty_applied,
        lateness=Lateness(row.lateness) if row.lateness else None,
        grader_id=row.grader_id,
        grading_time=row.grading_time,
        feedback=row.feedback,
        assistant_feedback=row.assistant_feedback,
        submission_data=decode_payload(row.submission_data),
        grading_data=decode_payload(row.grading_data),
    )
