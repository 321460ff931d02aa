"""Result endpoints: a student's best grade per exercise and per round.

Both are computed from stored submissions on every request, the same way
the gradebook push is, so they always agree with the gradebook.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.api.dependencies import GradingServiceDep
from app.services.grading_service import (
    ExerciseNotFoundError,
    ExerciseResult,
    RoundNotFoundError,
)

router = APIRouter(tags=["results"])


class ExerciseResultOut(BaseModel):
    exercise_id: UUID
    student_id: UUID
    name: str
    grade: int | None
    max_points: int
    points_to_pass: int
    passed: bool
    submission_count: int
    best_submission_id: UUID | None


class RoundResultOut(BaseModel):
    round_id: UUID
    student_id: UUID
    name: str
    total: int
    max_total: int
    exercises: list[ExerciseResultOut]


def _exercise_out(result: ExerciseResult, student_id: UUID) -> ExerciseResultOut:
    return ExerciseResultOut(
        exercise_id=result.exercise.id,
        student_id=student_id,
        name=result.exercise.name,
        grade=result.grade,
        max_points=result.exercise.max_points,
        points_to_pass=result.exercise.points_to_pass,
        passed=result.passed,
        submission_count=result.submission_count,
        best_submission_id=result.best.id if result.best is not None else None,
    )


@router.get(
    "/v1/exercises/{exercise_id}/results/{student_id}",
    response_model=ExerciseResultOut,
)
async def get_exercise_result(
    exercise_id: UUID,
    student_id: UUID,
    service: GradingServiceDep,
) -> ExerciseResultOut:
    try:
        result = await service.exercise_result(exercise_id, student_id)
    except ExerciseNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="exercise not found"
        ) from None
    return _exercise_out(result, student_id)


@router.get(
    "/v1/rounds/{round_id}/results/{student_id}",
    response_model=RoundResultOut,
)
async def get_round_result(
    round_id: UUID,
    student_id: UUID,
    service: GradingServiceDep,
) -> RoundResultOut:
    try:
        result = await service.round_result(round_id, student_id)
    except RoundNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="round not found"
        ) from None
    return RoundResultOut(
        round_id=result.exercise_round.id,
        student_id=student_id,
        name=result.exercise_round.name,
        total=result.total,
        max_total=result.max_total,
        exercises=[_exercise_out(r, student_id) for r in result.exercises],
    )
