"""lesson_quiz_core_tables

Revision ID: 5c1e7a9b3d20
Revises:
Create Date: 2026-10-18 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e7a9b3d20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "lesson_quizzes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("lesson_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("passing_score", sa.Integer(), nullable=True),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "passing_score IS NULL OR (passing_score >= 0 AND passing_score <= 100)",
            name="ck_lesson_quizzes_passing_score_range",
        ),
        sa.CheckConstraint(
            "max_attempts IS NULL OR max_attempts >= 1",
            name="ck_lesson_quizzes_max_attempts_positive",
        ),
        sa.CheckConstraint(
            "time_limit_minutes IS NULL OR time_limit_minutes >= 1",
            name="ck_lesson_quizzes_time_limit_positive",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("lesson_id", name="uq_lesson_quizzes_lesson_id"),
    )

    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("quiz_id", sa.Uuid(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["quiz_id"], ["lesson_quizzes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quiz_questions_quiz_order", "quiz_questions", ["quiz_id", "display_order"])

    op.create_table(
        "quiz_answers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("question_id", sa.Uuid(), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["question_id"], ["quiz_questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quiz_answers_question_order", "quiz_answers", ["question_id", "display_order"])

    op.create_table(
        "quiz_attempts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("quiz_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("enrollment_id", sa.String(64), nullable=True),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("score_percentage", sa.Integer(), nullable=True),
        sa.Column("passed", sa.Boolean(), nullable=True),
        sa.Column("answers_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("time_taken_seconds", sa.Integer(), nullable=True),
        sa.Column("idempotency_key", sa.String(160), nullable=False),
        sa.CheckConstraint("attempt_number >= 1", name="ck_quiz_attempts_attempt_number_positive"),
        sa.CheckConstraint(
            "score_percentage IS NULL OR (score_percentage >= 0 AND score_percentage <= 100)",
            name="ck_quiz_attempts_score_percentage_range",
        ),
        sa.CheckConstraint(
            "time_taken_seconds IS NULL OR time_taken_seconds >= 0",
            name="ck_quiz_attempts_time_taken_non_negative",
        ),
        sa.ForeignKeyConstraint(["quiz_id"], ["lesson_quizzes.id"]),
        sa.UniqueConstraint("quiz_id", "user_id", "attempt_number", name="uq_quiz_attempts_quiz_user_attempt"),
        sa.UniqueConstraint("idempotency_key", name="uq_quiz_attempts_idempotency_key"),
    )
    op.create_index("idx_quiz_attempts_quiz_user", "quiz_attempts", ["quiz_id", "user_id"])


def downgrade() -> None:
    op.drop_index("idx_quiz_attempts_quiz_user", table_name="quiz_attempts")
    op.drop_table("quiz_attempts")
    op.drop_index("idx_quiz_answers_question_order", table_name="quiz_answers")
    op.drop_table("quiz_answers")
    op.drop_index("idx_quiz_questions_quiz_order", table_name="quiz_questions")
    op.drop_table("quiz_questions")
    op.drop_table("lesson_quizzes")
