"""Wiring: which repositories a GradingService runs on.

With DATABASE_URL unset every request shares the module-level in-memory
stores below (dev runs and tests seed and reset them directly).  With a
database each request, or each worker job, gets PostgreSQL repos bound
to one session that commits when the scope exits cleanly.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends

from app.core.clock import Clock, SystemClock
from app.db import engine as db
from app.repos.attachment_repo import InMemoryAttachmentStore
from app.repos.course_repo import InMemoryCourseRepo
from app.repos.gradebook_repo import InMemoryGradebook
from app.repos.pg_attachment_repo import PgAttachmentStore
from app.repos.pg_course_repo import PgCourseRepo
from app.repos.pg_gradebook_repo import PgGradebook
from app.repos.pg_submission_repo import PgSubmissionRepo
from app.repos.submission_repo import InMemorySubmissionRepo
from app.services.grading_service import GradingService

submission_repo = InMemorySubmissionRepo()
course_repo = InMemoryCourseRepo()
attachment_store = InMemoryAttachmentStore()
gradebook = InMemoryGradebook()
clock: Clock = SystemClock()


@asynccontextmanager
async def grading_service_scope() -> AsyncIterator[GradingService]:
    if db.async_session_factory is None:
        yield GradingService(
            submission_repo, course_repo, attachment_store, gradebook, clock
        )
        return

    async with db.session_scope() as session:
        yield GradingService(
            PgSubmissionRepo(session),
            PgCourseRepo(session),
            PgAttachmentStore(session),
            PgGradebook(session),
            clock,
        )


async def get_grading_service() -> AsyncGenerator[GradingService, None]:
    """FastAPI dependency: one GradingService per request."""
    async with grading_service_scope() as service:
        yield service


GradingServiceDep = Annotated[GradingService, Depends(get_grading_service)]
