from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SubmittedFile:
    """A file uploaded with a submission, keyed by its form field."""

    submission_id: UUID
    field_key: str
    filename: str
    content: bytes
    mimetype: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)
