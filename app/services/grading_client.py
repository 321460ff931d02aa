"""Remote grading backend client.

Each exercise names a grading service by URL.  The worker POSTs the
submission to it (form fields from submission_data, plus any attached
files) and expects a JSON envelope back:

    {"points": 7, "max_points": 10, "feedback": "...", "grading_data": {...}}
    {"accepted": true}                  # result will arrive via callback
    {"rejected": true, "feedback": ...} # content refused

Failures are classified into three exception classes so the caller can
move the submission to the right terminal state:

    GradingConnectionError  connection refused, timeout
    GradingServerError      5xx, non-JSON body, malformed envelope
    SubmissionRejectedError backend refused the content
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from app.core.config import SETTINGS
from app.core.metrics import GRADING_BACKEND_DURATION
from app.models.attachment import SubmittedFile
from app.models.course import Exercise
from app.models.submission import Submission
from app.services.payload import safe_file_name

logger = logging.getLogger(__name__)


class GradingBackendError(Exception):
    """Base class for failures reported by or about a grading backend."""

    def __init__(self, message: str, feedback: str | None = None) -> None:
        super().__init__(message)
        self.feedback = feedback


class GradingConnectionError(GradingBackendError):
    pass


class GradingServerError(GradingBackendError):
    pass


class SubmissionRejectedError(GradingBackendError):
    pass


@dataclass(frozen=True, slots=True)
class GradingResponse:
    points: int
    max_points: int
    feedback: str | None
    grading_data: Any = None


class GradingBackend(Protocol):
    async def grade(
        self,
        exercise: Exercise,
        submission: Submission,
        files: list[SubmittedFile],
    ) -> GradingResponse | None:
        """Grade synchronously, or return None when the backend accepted
        the submission for asynchronous grading."""
        ...


class HttpGradingBackend:
    """Satisfies GradingBackend over HTTP with an httpx AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(timeout=SETTINGS.grading_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def grade(
        self,
        exercise: Exercise,
        submission: Submission,
        files: list[SubmittedFile],
    ) -> GradingResponse | None:
        data = _form_fields(submission)
        upload = [
            (f.field_key, (safe_file_name(f.filename), f.content, f.mimetype))
            for f in files
        ]
        params = {"submission_id": str(submission.id), "hash": submission.hash}

        start = time.perf_counter()
        try:
            response = await self._client.post(
                exercise.service_url,
                params=params,
                data=data,
                files=upload or None,
            )
        except httpx.TimeoutException as exc:
            raise GradingConnectionError(f"grading backend timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise GradingConnectionError(f"grading backend unreachable: {exc}") from exc
        finally:
            GRADING_BACKEND_DURATION.observe(time.perf_counter() - start)

        if response.status_code >= 500:
            raise GradingServerError(f"grading backend returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise GradingServerError("grading backend returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise GradingServerError("grading backend returned a malformed envelope")

        if body.get("rejected") or response.status_code == 400:
            raise SubmissionRejectedError(
                "grading backend rejected the submission",
                feedback=body.get("feedback"),
            )
        if response.status_code >= 400:
            raise GradingServerError(f"grading backend returned {response.status_code}")

        if "points" not in body:
            if body.get("accepted"):
                logger.info("Submission %s accepted for asynchronous grading", submission.id)
                return None
            raise GradingServerError("grading backend response has no points")

        try:
            points = int(body["points"])
            max_points = int(body.get("max_points", 0))
        except (TypeError, ValueError) as exc:
            raise GradingServerError("grading backend returned non-integer points") from exc

        return GradingResponse(
            points=points,
            max_points=max_points,
            feedback=body.get("feedback"),
            grading_data=body.get("grading_data"),
        )


def _form_fields(submission: Submission) -> dict[str, list[str]]:
    """Flatten submission_data into form fields.

    Accepts either a mapping or a list of [key, value] pairs (the shape
    HTML forms produce for repeated fields).
    """
    payload = submission.submission_data
    if payload is None:
        return {}
    if isinstance(payload, dict):
        items = list(payload.items())
    elif isinstance(payload, list):
        items = [tuple(pair) for pair in payload if isinstance(pair, list | tuple) and len(pair) == 2]
    else:
        return {"data": [str(payload)]}

    fields: dict[str, list[str]] = {}
    for key, value in items:
        values = value if isinstance(value, list) else [value]
        fields.setdefault(str(key), []).extend(str(v) for v in values)
    return fields
