from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.attachment import SubmittedFile


class AttachmentStore(Protocol):
    async def add(self, file: SubmittedFile) -> None: ...
    async def list_for_submission(self, submission_id: UUID) -> list[SubmittedFile]: ...
    async def delete_for_submission(self, submission_id: UUID) -> int: ...


class InMemoryAttachmentStore:
    def __init__(self) -> None:
        # (submission_id, field_key, filename) -> file
        self._files: dict[tuple[UUID, str, str], SubmittedFile] = {}

    async def add(self, file: SubmittedFile) -> None:
        self._files[(file.submission_id, file.field_key, file.filename)] = file

    async def list_for_submission(self, submission_id: UUID) -> list[SubmittedFile]:
        found = [f for key, f in self._files.items() if key[0] == submission_id]
        return sorted(found, key=lambda f: (f.field_key, f.filename))

    async def delete_for_submission(self, submission_id: UUID) -> int:
        keys = [key for key in self._files if key[0] == submission_id]
        for key in keys:
            del self._files[key]
        return len(keys)
