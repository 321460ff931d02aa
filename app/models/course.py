from __future__ import annotations

import enum
from dataclasses import dataclass, field
from uuid import UUID, uuid4


class LearningObjectKind(str, enum.Enum):
    EXERCISE = "exercise"
    CHAPTER = "chapter"


@dataclass(frozen=True, slots=True)
class Category:
    """Cross-round grouping of learning objects sharing a pass threshold."""

    id: UUID
    name: str
    points_to_pass: int = 0
    status: str = "ready"  # ready|hidden|nototal

    @staticmethod
    def new(*, name: str, points_to_pass: int = 0) -> Category:
        return Category(id=uuid4(), name=name, points_to_pass=points_to_pass)


@dataclass(frozen=True, slots=True)
class ExerciseRound:
    """A time-boxed collection of exercises with a shared deadline.

    late_submission_deadline only matters when late submissions are
    allowed, and must not precede closing_time in that case.
    """

    id: UUID
    name: str
    opening_time: int
    closing_time: int
    late_submissions_allowed: bool = False
    late_submission_deadline: int = 0
    late_submission_penalty: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.late_submission_penalty <= 1.0:
            raise ValueError(
                f"late_submission_penalty must be in [0, 1] "
                f"(got {self.late_submission_penalty!r})"
            )
        if (
            self.late_submissions_allowed
            and self.late_submission_deadline < self.closing_time
        ):
            raise ValueError("late_submission_deadline precedes closing_time")

    @staticmethod
    def new(
        *,
        name: str,
        closing_time: int,
        opening_time: int = 0,
        late_submissions_allowed: bool = False,
        late_submission_deadline: int = 0,
        late_submission_penalty: float = 0.0,
    ) -> ExerciseRound:
        return ExerciseRound(
            id=uuid4(),
            name=name,
            opening_time=opening_time,
            closing_time=closing_time,
            late_submissions_allowed=late_submissions_allowed,
            late_submission_deadline=late_submission_deadline,
            late_submission_penalty=late_submission_penalty,
        )


@dataclass(frozen=True, slots=True)
class Exercise:
    id: UUID
    round_id: UUID
    category_id: UUID
    name: str
    max_points: int = 100
    points_to_pass: int = 0
    max_submissions: int = 10  # 0 = unlimited
    service_url: str = ""
    order: int = 0
    kind: LearningObjectKind = field(default=LearningObjectKind.EXERCISE, init=False)

    def __post_init__(self) -> None:
        if self.max_points < 0 or self.points_to_pass < 0:
            raise ValueError("max_points and points_to_pass must be non-negative")

    @property
    def is_submittable(self) -> bool:
        return True

    @staticmethod
    def new(
        *,
        round_id: UUID,
        category_id: UUID,
        name: str,
        max_points: int = 100,
        points_to_pass: int = 0,
        max_submissions: int = 10,
        service_url: str = "",
        order: int = 0,
    ) -> Exercise:
        return Exercise(
            id=uuid4(),
            round_id=round_id,
            category_id=category_id,
            name=name,
            max_points=max_points,
            points_to_pass=points_to_pass,
            max_submissions=max_submissions,
            service_url=service_url,
            order=order,
        )


@dataclass(frozen=True, slots=True)
class Chapter:
    """Non-gradable content page; never takes part in scoring."""

    id: UUID
    round_id: UUID
    category_id: UUID
    name: str
    service_url: str = ""
    order: int = 0
    kind: LearningObjectKind = field(default=LearningObjectKind.CHAPTER, init=False)

    @property
    def is_submittable(self) -> bool:
        return False

    @staticmethod
    def new(
        *, round_id: UUID, category_id: UUID, name: str, order: int = 0
    ) -> Chapter:
        return Chapter(
            id=uuid4(),
            round_id=round_id,
            category_id=category_id,
            name=name,
            order=order,
        )


LearningObject = Exercise | Chapter
