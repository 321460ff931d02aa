from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from app.models.submission import Submission
from app.services.submission_limit import count_prior_or_equal


class SubmissionRepo(Protocol):
    async def get(self, submission_id: UUID) -> Submission | None: ...
    async def add(self, submission: Submission) -> None: ...
    async def save(self, submission: Submission) -> None: ...
    async def delete(self, submission_id: UUID) -> bool: ...
    async def list_for_student(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> list[Submission]: ...
    async def count_at_or_before(
        self,
        exercise_id: UUID,
        submitter_id: UUID,
        at: int,
        excluding_id: UUID | None = None,
    ) -> int: ...


class InMemorySubmissionRepo:
    """Stores copies, so callers only see changes they save."""

    def __init__(self) -> None:
        self._by_id: dict[UUID, Submission] = {}

    async def get(self, submission_id: UUID) -> Submission | None:
        s = self._by_id.get(submission_id)
        return replace(s) if s is not None else None

    async def add(self, submission: Submission) -> None:
        if submission.id in self._by_id:
            raise ValueError("submission already exists")
        self._by_id[submission.id] = replace(submission)

    async def save(self, submission: Submission) -> None:
        if submission.id not in self._by_id:
            raise KeyError("submission not found")
        self._by_id[submission.id] = replace(submission)

    async def delete(self, submission_id: UUID) -> bool:
        return self._by_id.pop(submission_id, None) is not None

    async def list_for_student(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> list[Submission]:
        found = [
            replace(s)
            for s in self._by_id.values()
            if s.exercise_id == exercise_id and s.submitter_id == submitter_id
        ]
        return sorted(found, key=lambda s: s.submission_time)

    async def count_at_or_before(
        self,
        exercise_id: UUID,
        submitter_id: UUID,
        at: int,
        excluding_id: UUID | None = None,
    ) -> int:
        return count_prior_or_equal(
            self._by_id.values(),
            exercise_id=exercise_id,
            submitter_id=submitter_id,
            at_or_before=at,
            excluding_id=excluding_id,
        )
