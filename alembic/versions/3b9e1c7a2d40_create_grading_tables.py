"""create grading tables

Revision ID: 3b9e1c7a2d40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b9e1c7a2d40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("points_to_pass", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="ready"),
    )
    op.create_table(
        "exercise_rounds",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("opening_time", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("closing_time", sa.BigInteger(), nullable=False),
        sa.Column(
            "late_submissions_allowed", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "late_submission_deadline", sa.BigInteger(), nullable=False, server_default="0"
        ),
        sa.Column(
            "late_submission_penalty", sa.Float(), nullable=False, server_default="0"
        ),
    )
    op.create_table(
        "learning_objects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column(
            "round_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("exercise_rounds.id"),
            nullable=False,
        ),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("service_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("ordernum", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_points", sa.Integer(), nullable=True),
        sa.Column("points_to_pass", sa.Integer(), nullable=True),
        sa.Column("max_submissions", sa.Integer(), nullable=True),
    )
    op.create_table(
        "deadline_deviations",
        sa.Column(
            "exercise_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("learning_objects.id"),
            primary_key=True,
        ),
        sa.Column("submitter_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("new_deadline", sa.BigInteger(), nullable=False),
        sa.Column("use_late_penalty", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "submit_limit_deviations",
        sa.Column(
            "exercise_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("learning_objects.id"),
            primary_key=True,
        ),
        sa.Column("submitter_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("extra_submissions", sa.Integer(), nullable=False),
    )
    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "exercise_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("learning_objects.id"),
            nullable=False,
        ),
        sa.Column("submitter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submission_time", sa.BigInteger(), nullable=False),
        sa.Column("hash", sa.String(length=32), nullable=False),
        sa.Column(
            "status", sa.String(length=16), nullable=False, server_default="initialized"
        ),
        sa.Column("service_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("service_max_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.Column("late_penalty_applied", sa.Float(), nullable=True),
        sa.Column("lateness", sa.String(length=24), nullable=True),
        sa.Column("grader_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("grading_time", sa.BigInteger(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("assistant_feedback", sa.Text(), nullable=True),
        sa.Column("submission_data", sa.Text(), nullable=True),
        sa.Column("grading_data", sa.Text(), nullable=True),
    )
    op.create_index(
        "ix_submissions_exercise_submitter_time",
        "submissions",
        ["exercise_id", "submitter_id", "submission_time"],
    )
    op.create_table(
        "submitted_files",
        sa.Column(
            "submission_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("submissions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("field_key", sa.String(length=255), primary_key=True),
        sa.Column("filename", sa.String(length=255), primary_key=True),
        sa.Column("mimetype", sa.String(length=255), nullable=False),
        sa.Column("content", sa.LargeBinary(), nullable=False),
    )
    op.create_table(
        "gradebook_grades",
        sa.Column(
            "exercise_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("learning_objects.id"),
            primary_key=True,
        ),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("raw_grade", sa.Integer(), nullable=False),
        sa.Column("modified_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date_graded", sa.BigInteger(), nullable=False),
        sa.Column("date_submitted", sa.BigInteger(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("gradebook_grades")
    op.drop_table("submitted_files")
    op.drop_index("ix_submissions_exercise_submitter_time", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("submit_limit_deviations")
    op.drop_table("deadline_deviations")
    op.drop_table("learning_objects")
    op.drop_table("exercise_rounds")
    op.drop_table("categories")
