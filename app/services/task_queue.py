"""Grading queue: hand-off between the API and the grading worker.

PRODUCER/CONSUMER
------------------
  Producer (API):    a new submission is stored in WAITING state and its
                     id is LPUSHed onto the grading list.  The request
                     returns 201 immediately.
  Consumer (worker): BRPOP an id, load the submission, call its
                     exercise's grading backend, apply the result.

  LPUSH adds to the head, BRPOP removes from the tail, so jobs are
  graded in the order they were submitted.

Only the submission id travels through the queue.  Everything else
(exercise, deadlines, prior attempts) is re-read by the worker at
grading time, so a job that sits in the queue while a deviation is
granted is still scored against current data.

DELIVERY
---------
  At-most-once: if the worker crashes mid-job the submission stays in
  WAITING.  The grading backend may still call back through
  POST /v1/submissions/{id}/grade, so such submissions are recoverable.
"""

from __future__ import annotations

import json
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from app.core.metrics import GRADING_QUEUE_DEPTH
from app.db.redis import redis_pool

GRADING_QUEUE = "grading"


@dataclass(frozen=True, slots=True)
class GradingJob:
    """One submission awaiting its grading backend."""

    id: str
    submission_id: uuid.UUID

    @staticmethod
    def new(submission_id: uuid.UUID) -> GradingJob:
        return GradingJob(id=str(uuid.uuid4()), submission_id=submission_id)


@runtime_checkable
class GradingQueue(Protocol):
    async def enqueue(self, submission_id: uuid.UUID) -> GradingJob: ...
    async def dequeue(self, timeout: int = 0) -> GradingJob | None: ...
    async def length(self) -> int: ...


class InMemoryGradingQueue:
    """In-process FIFO for tests and single-process dev runs."""

    def __init__(self) -> None:
        self._jobs: deque[GradingJob] = deque()

    async def enqueue(self, submission_id: uuid.UUID) -> GradingJob:
        job = GradingJob.new(submission_id)
        self._jobs.append(job)
        GRADING_QUEUE_DEPTH.set(len(self._jobs))
        return job

    async def dequeue(self, timeout: int = 0) -> GradingJob | None:
        if not self._jobs:
            return None
        job = self._jobs.popleft()
        GRADING_QUEUE_DEPTH.set(len(self._jobs))
        return job

    async def length(self) -> int:
        return len(self._jobs)

    def clear(self) -> None:
        self._jobs.clear()
        GRADING_QUEUE_DEPTH.set(0)


class RedisGradingQueue:
    """Redis-backed grading queue using LPUSH/BRPOP."""

    _PREFIX = "queue:"

    def __init__(self, redis_client, name: str = GRADING_QUEUE) -> None:
        self._redis = redis_client
        self._key = f"{self._PREFIX}{name}"

    async def enqueue(self, submission_id: uuid.UUID) -> GradingJob:
        job = GradingJob.new(submission_id)
        payload = json.dumps({"id": job.id, "submission_id": str(submission_id)})
        depth = await self._redis.lpush(self._key, payload)
        GRADING_QUEUE_DEPTH.set(depth)
        return job

    async def dequeue(self, timeout: int = 5) -> GradingJob | None:
        result = await self._redis.brpop(self._key, timeout=timeout)
        if result is None:
            return None
        _, payload = result
        data = json.loads(payload)
        GRADING_QUEUE_DEPTH.set(await self._redis.llen(self._key))
        return GradingJob(id=data["id"], submission_id=uuid.UUID(data["submission_id"]))

    async def length(self) -> int:
        return await self._redis.llen(self._key)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    grading_queue: GradingQueue = RedisGradingQueue(redis_pool)
else:
    grading_queue = InMemoryGradingQueue()
