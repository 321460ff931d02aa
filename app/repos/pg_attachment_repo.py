"""PostgreSQL implementation of AttachmentStore."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import SubmittedFileRow
from app.models.attachment import SubmittedFile


class PgAttachmentStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, file: SubmittedFile) -> None:
        await self._session.merge(
            SubmittedFileRow(
                submission_id=file.submission_id,
                field_key=file.field_key,
                filename=file.filename,
                mimetype=file.mimetype,
                content=file.content,
            )
        )

    async def list_for_submission(self, submission_id: UUID) -> list[SubmittedFile]:
        stmt = (
            select(SubmittedFileRow)
            .where(SubmittedFileRow.submission_id == submission_id)
            .order_by(SubmittedFileRow.field_key, SubmittedFileRow.filename)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            SubmittedFile(
                submission_id=r.submission_id,
                field_key=r.field_key,
                filename=r.filename,
                content=r.content,
                mimetype=r.mimetype,
            )
            for r in rows
        ]

    async def delete_for_submission(self, submission_id: UUID) -> int:
        stmt = delete(SubmittedFileRow).where(
            SubmittedFileRow.submission_id == submission_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount
