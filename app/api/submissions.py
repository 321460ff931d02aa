"""Submission endpoints.

  POST   /v1/exercises/{exercise_id}/submissions   student submits (form data + files)
  GET    /v1/submissions/{submission_id}
  POST   /v1/submissions/{submission_id}/grade     grading backend callback
  PATCH  /v1/submissions/{submission_id}           manual grade by course staff
  DELETE /v1/submissions/{submission_id}

A new submission is stored INITIALIZED and its id is queued for the
worker once the response is on its way (so the database row is
committed before the worker can pick the job up).  Submitting never
fails because of a deadline or the attempt limit; both only affect the
grade.

Callers are identified by plain ids.  Authentication belongs to the
platform in front of this service.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from app.api.dependencies import GradingServiceDep
from app.models.submission import Submission
from app.services.grading_service import (
    ExerciseNotFoundError,
    GradingService,
    SubmissionNotFoundError,
    UploadedFile,
)
from app.services.lifecycle import InvalidTransitionError
from app.services.payload import grading_data_errors
from app.services.task_queue import grading_queue

logger = logging.getLogger(__name__)

router = APIRouter(tags=["submissions"])


class SubmittedFileOut(BaseModel):
    field_key: str
    filename: str
    mimetype: str
    size: int


class SubmissionOut(BaseModel):
    id: UUID
    exercise_id: UUID
    submitter_id: UUID
    submission_time: int
    hash: str
    status: str
    attempt: int
    service_points: int
    service_max_points: int
    grade: int | None
    late_penalty_applied: float | None
    late_penalty_percent: int | None
    lateness: str | None
    grader_id: UUID | None
    grading_time: int | None
    feedback: str | None
    assistant_feedback: str | None
    grading_errors: str
    submission_data: Any = None
    grading_data: Any = None
    files: list[SubmittedFileOut] = []


class GradeIn(BaseModel):
    """Grading backend result.  ``hash`` must match the one sent at dispatch."""

    hash: str
    points: int = 0
    max_points: int = 0
    feedback: str | None = None
    grading_data: Any = None
    no_penalties: bool = False
    error: bool = False
    rejected: bool = False


class EditGradeIn(BaseModel):
    grade: int
    grader_id: UUID
    assistant_feedback: str | None = None


async def _to_out(service: GradingService, s: Submission) -> SubmissionOut:
    files = await service.list_files(s.id)
    return SubmissionOut(
        id=s.id,
        exercise_id=s.exercise_id,
        submitter_id=s.submitter_id,
        submission_time=s.submission_time,
        hash=s.hash,
        status=s.status.value,
        attempt=await service.attempt_number(s),
        service_points=s.service_points,
        service_max_points=s.service_max_points,
        grade=s.grade,
        late_penalty_applied=s.late_penalty_applied,
        late_penalty_percent=s.late_penalty_percent,
        lateness=s.lateness.value if s.lateness is not None else None,
        grader_id=s.grader_id,
        grading_time=s.grading_time,
        feedback=s.feedback,
        assistant_feedback=s.assistant_feedback,
        grading_errors=grading_data_errors(s.grading_data),
        submission_data=s.submission_data,
        grading_data=s.grading_data,
        files=[
            SubmittedFileOut(
                field_key=f.field_key,
                filename=f.filename,
                mimetype=f.mimetype,
                size=f.size,
            )
            for f in files
        ],
    )


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


def _conflict(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# ---------------------------------------------------------------------------
# POST /v1/exercises/{exercise_id}/submissions
# ---------------------------------------------------------------------------


@router.post(
    "/v1/exercises/{exercise_id}/submissions",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_submission(
    exercise_id: UUID,
    request: Request,
    service: GradingServiceDep,
    background: BackgroundTasks,
    submitter_id: UUID = Query(...),
) -> SubmissionOut:
    """Accept a submission as form fields and uploaded files.

    Text fields are kept in order as [key, value] pairs so repeated
    fields (checkbox groups) survive.  Each uploaded file is stored
    under its form field name.
    """
    form = await request.form()
    fields: list[list[str]] = []
    uploads: list[UploadedFile] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            uploads.append(
                UploadedFile(
                    field_key=key,
                    filename=value.filename or key,
                    content=await value.read(),
                    mimetype=value.content_type or "application/octet-stream",
                )
            )
        else:
            fields.append([key, value])

    try:
        submission = await service.create_submission(
            exercise_id,
            submitter_id,
            submission_data=fields or None,
            files=uploads,
        )
    except ExerciseNotFoundError:
        logger.warning("Submission to unknown exercise=%s", exercise_id)
        raise _not_found("exercise") from None

    background.add_task(grading_queue.enqueue, submission.id)
    return await _to_out(service, submission)


# ---------------------------------------------------------------------------
# GET /v1/submissions/{submission_id}
# ---------------------------------------------------------------------------


@router.get("/v1/submissions/{submission_id}", response_model=SubmissionOut)
async def get_submission(submission_id: UUID, service: GradingServiceDep) -> SubmissionOut:
    try:
        submission = await service.get_submission(submission_id)
    except SubmissionNotFoundError:
        raise _not_found("submission") from None
    return await _to_out(service, submission)


# ---------------------------------------------------------------------------
# POST /v1/submissions/{submission_id}/grade
# ---------------------------------------------------------------------------


@router.post("/v1/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def grade_submission(
    submission_id: UUID,
    payload: GradeIn,
    service: GradingServiceDep,
) -> SubmissionOut:
    """Asynchronous grading result from the grading backend."""
    try:
        submission = await service.get_submission(submission_id)
        if payload.hash != submission.hash:
            logger.warning("Grading callback with wrong hash for submission=%s", submission_id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="hash does not match submission",
            )

        if payload.rejected:
            submission = await service.record_rejected(submission_id, payload.feedback)
        elif payload.error:
            submission = await service.record_error(submission_id, payload.feedback)
        else:
            submission = await service.grade(
                submission_id,
                payload.points,
                payload.max_points,
                feedback=payload.feedback,
                grading_data=payload.grading_data,
                no_penalties=payload.no_penalties,
            )
    except SubmissionNotFoundError:
        raise _not_found("submission") from None
    except ExerciseNotFoundError:
        raise _not_found("exercise") from None
    except InvalidTransitionError as e:
        raise _conflict(e) from None

    return await _to_out(service, submission)


# ---------------------------------------------------------------------------
# PATCH /v1/submissions/{submission_id}
# ---------------------------------------------------------------------------


@router.patch("/v1/submissions/{submission_id}", response_model=SubmissionOut)
async def edit_submission_grade(
    submission_id: UUID,
    payload: EditGradeIn,
    service: GradingServiceDep,
) -> SubmissionOut:
    try:
        submission = await service.edit_grade(
            submission_id,
            payload.grade,
            grader_id=payload.grader_id,
            assistant_feedback=payload.assistant_feedback,
        )
    except SubmissionNotFoundError:
        raise _not_found("submission") from None
    except ExerciseNotFoundError:
        raise _not_found("exercise") from None
    except InvalidTransitionError as e:
        raise _conflict(e) from None
    except ValueError as e:
        logger.warning("Rejected manual grade for submission=%s: %s", submission_id, e)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=str(e),
        ) from None

    return await _to_out(service, submission)


# ---------------------------------------------------------------------------
# DELETE /v1/submissions/{submission_id}
# ---------------------------------------------------------------------------


@router.delete(
    "/v1/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_submission(
    submission_id: UUID,
    service: GradingServiceDep,
    update_gradebook: bool = True,
) -> None:
    try:
        await service.delete_submission(submission_id, update_gradebook=update_gradebook)
    except SubmissionNotFoundError:
        raise _not_found("submission") from None
