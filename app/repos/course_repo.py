from __future__ import annotations

from typing import Protocol
from uuid import UUID

from app.models.course import Category, Exercise, ExerciseRound, LearningObject
from app.models.deviation import DeadlineDeviation, SubmitLimitDeviation


class CourseRepo(Protocol):
    """Read access to course structure and per-student deviations."""

    async def get_round(self, round_id: UUID) -> ExerciseRound | None: ...
    async def get_category(self, category_id: UUID) -> Category | None: ...
    async def get_learning_object(self, lobject_id: UUID) -> LearningObject | None: ...
    async def get_exercise(self, exercise_id: UUID) -> Exercise | None: ...
    async def list_learning_objects(self, round_id: UUID) -> list[LearningObject]: ...
    async def find_deadline_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> DeadlineDeviation | None: ...
    async def find_submit_limit_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> SubmitLimitDeviation | None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._rounds: dict[UUID, ExerciseRound] = {}
        self._categories: dict[UUID, Category] = {}
        self._lobjects: dict[UUID, LearningObject] = {}
        # At most one of each deviation per (exercise, student).
        self._deadline_deviations: dict[tuple[UUID, UUID], DeadlineDeviation] = {}
        self._limit_deviations: dict[tuple[UUID, UUID], SubmitLimitDeviation] = {}

    # --- seeding (tests, local dev) ---

    def add_round(self, exercise_round: ExerciseRound) -> None:
        self._rounds[exercise_round.id] = exercise_round

    def add_category(self, category: Category) -> None:
        self._categories[category.id] = category

    def add_learning_object(self, lobject: LearningObject) -> None:
        self._lobjects[lobject.id] = lobject

    def add_deadline_deviation(self, deviation: DeadlineDeviation) -> None:
        self._deadline_deviations[(deviation.exercise_id, deviation.submitter_id)] = deviation

    def add_submit_limit_deviation(self, deviation: SubmitLimitDeviation) -> None:
        self._limit_deviations[(deviation.exercise_id, deviation.submitter_id)] = deviation

    def clear(self) -> None:
        self._rounds.clear()
        self._categories.clear()
        self._lobjects.clear()
        self._deadline_deviations.clear()
        self._limit_deviations.clear()

    # --- CourseRepo ---

    async def get_round(self, round_id: UUID) -> ExerciseRound | None:
        return self._rounds.get(round_id)

    async def get_category(self, category_id: UUID) -> Category | None:
        return self._categories.get(category_id)

    async def get_learning_object(self, lobject_id: UUID) -> LearningObject | None:
        return self._lobjects.get(lobject_id)

    async def get_exercise(self, exercise_id: UUID) -> Exercise | None:
        lobject = self._lobjects.get(exercise_id)
        return lobject if isinstance(lobject, Exercise) else None

    async def list_learning_objects(self, round_id: UUID) -> list[LearningObject]:
        found = [lo for lo in self._lobjects.values() if lo.round_id == round_id]
        return sorted(found, key=lambda lo: lo.order)

    async def find_deadline_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> DeadlineDeviation | None:
        return self._deadline_deviations.get((exercise_id, submitter_id))

    async def find_submit_limit_deviation(
        self, exercise_id: UUID, submitter_id: UUID
    ) -> SubmitLimitDeviation | None:
        return self._limit_deviations.get((exercise_id, submitter_id))
