"""SQLAlchemy table definitions.

These map to the dataclass domain models in app/models/.  The domain
models stay persistence-free; repos convert between rows and dataclasses.
Instants are stored as Unix timestamps.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.engine import Base

# --- Course structure ---


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    points_to_pass: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="ready"
    )  # ready|hidden|nototal


class ExerciseRoundRow(Base):
    __tablename__ = "exercise_rounds"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    opening_time: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    closing_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    late_submissions_allowed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    late_submission_deadline: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    late_submission_penalty: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )


class LearningObjectRow(Base):
    """Exercises and chapters share one table, told apart by ``kind``."""

    __tablename__ = "learning_objects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # exercise|chapter
    round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("exercise_rounds.id"), nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ordernum: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # exercise-only columns
    max_points: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points_to_pass: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_submissions: Mapped[int | None] = mapped_column(Integer, nullable=True)


class DeadlineDeviationRow(Base):
    __tablename__ = "deadline_deviations"

    exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("learning_objects.id"), primary_key=True
    )
    submitter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True
    )
    new_deadline: Mapped[int] = mapped_column(BigInteger, nullable=False)
    use_late_penalty: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class SubmitLimitDeviationRow(Base):
    __tablename__ = "submit_limit_deviations"

    exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("learning_objects.id"), primary_key=True
    )
    submitter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True
    )
    extra_submissions: Mapped[int] = mapped_column(Integer, nullable=False)


# --- Submissions ---


class SubmissionRow(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("learning_objects.id"), nullable=False
    )
    submitter_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    submission_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    hash: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="initialized"
    )  # initialized|waiting|ready|error|rejected
    service_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    service_max_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    grade: Mapped[int | None] = mapped_column(Integer, nullable=True)
    late_penalty_applied: Mapped[float | None] = mapped_column(Float, nullable=True)
    lateness: Mapped[str | None] = mapped_column(
        String(24), nullable=True
    )  # on_time|late_with_penalty|late_rejected
    grader_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    grading_time: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    assistant_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    submission_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    grading_data: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        # Serves the attempt-count query and per-student listings.
        Index(
            "ix_submissions_exercise_submitter_time",
            "exercise_id",
            "submitter_id",
            "submission_time",
        ),
    )


class SubmittedFileRow(Base):
    __tablename__ = "submitted_files"

    submission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        primary_key=True,
    )
    field_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    filename: Mapped[str] = mapped_column(String(255), primary_key=True)
    mimetype: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


# --- Gradebook ---


class GradebookGradeRow(Base):
    __tablename__ = "gradebook_grades"

    exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("learning_objects.id"), primary_key=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    raw_grade: Mapped[int] = mapped_column(Integer, nullable=False)
    modified_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    date_graded: Mapped[int] = mapped_column(BigInteger, nullable=False)
    date_submitted: Mapped[int] = mapped_column(BigInteger, nullable=False)
