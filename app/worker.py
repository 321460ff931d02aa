"""Grading worker process.

RUN:  python -m app.worker

Same image as the API, different command:
  api:    uvicorn app.main:app --host 0.0.0.0 --port 8000
  worker: python -m app.worker

The loop BRPOPs one submission id at a time, commits it as WAITING, sends it to
its exercise's grading backend and applies the outcome in a second database
transaction.  Grading backends can be slow (container-based graders take
tens of seconds), which is why this does not happen inside the request.

One job in flight per worker process.  Run more processes for more
throughput; the queue hands each submission id to exactly one of them.
Failed jobs are logged and dropped, never retried: the submission is
already in ERROR or REJECTED, and the student retries by submitting
again.
"""

from __future__ import annotations

import asyncio
import logging

from app.api.dependencies import grading_service_scope
from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.db import engine as db
from app.services.grading_client import (
    GradingBackend,
    GradingBackendError,
    GradingResponse,
    HttpGradingBackend,
)
from app.services.lifecycle import InvalidTransitionError
from app.services.task_queue import GradingJob, GradingQueue, grading_queue

logger = logging.getLogger("worker")


async def process_job(job: GradingJob, backend: GradingBackend) -> bool:
    """Grade one queued submission.  Returns False when the job was dropped.

    Three units of work: commit WAITING, call the backend with no session
    open, then record the outcome in a fresh session.
    """
    try:
        async with grading_service_scope() as service:
            request = await service.start_grading(job.submission_id)
    except LookupError:
        # Deleted between submit and dispatch.
        logger.warning("Job %s: submission=%s no longer exists", job.id, job.submission_id)
        return False
    except InvalidTransitionError as e:
        logger.warning("Job %s: submission=%s skipped: %s", job.id, job.submission_id, e)
        return False

    failure: GradingBackendError | None = None
    response: GradingResponse | None = None
    try:
        response = await backend.grade(request.exercise, request.submission, request.files)
    except GradingBackendError as e:
        failure = e

    try:
        async with grading_service_scope() as service:
            if failure is not None:
                submission = await service.apply_failure(job.submission_id, failure)
            else:
                submission = await service.apply_response(job.submission_id, response)
    except LookupError:
        logger.warning("Job %s: submission=%s deleted while grading", job.id, job.submission_id)
        return False
    except InvalidTransitionError as e:
        # A callback already finished it.
        logger.warning(
            "Job %s: outcome for submission=%s dropped: %s", job.id, job.submission_id, e
        )
        return False

    logger.info(
        "Job %s: submission=%s is %s",
        job.id,
        job.submission_id,
        submission.status.value,
    )
    return True


async def run_worker(queue: GradingQueue = grading_queue) -> None:
    if db.async_session_factory is None:
        logger.warning("No DATABASE_URL configured — worker only sees its own in-memory data")

    backend = HttpGradingBackend()
    logger.info("Worker started — timeout=%.1fs", SETTINGS.grading_timeout)
    try:
        while True:
            job = await queue.dequeue(timeout=1)
            if job is None:
                # The in-memory queue returns at once when empty.
                await asyncio.sleep(1)
                continue
            try:
                await process_job(job, backend)
            except Exception:
                logger.exception("Job %s on submission=%s failed", job.id, job.submission_id)
    finally:
        await backend.aclose()


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
