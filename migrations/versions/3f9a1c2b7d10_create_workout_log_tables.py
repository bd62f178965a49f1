"""create workout log tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Local mirror of the exercise catalog; rows are synced from the catalog owner
    op.create_table(
        "exercises",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("exercise_type", sa.String(length=20), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=500), nullable=True),
    )

    op.create_table(
        "workout_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("idempotency_key", sa.String(length=64), nullable=True),
        sa.Column("title", sa.String(length=100), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "idempotency_key", name="uq_workout_logs_user_idempotency_key"),
    )
    op.create_index("ix_workout_logs_user_id", "workout_logs", ["user_id"])
    op.create_index("ix_workout_logs_deleted_at", "workout_logs", ["deleted_at"])

    op.create_table(
        "exercise_groupings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("workout_id", sa.String(length=36), sa.ForeignKey("workout_logs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("ordinal", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rest_seconds", sa.Integer(), nullable=True),
    )
    op.create_index("ix_exercise_groupings_workout_id", "exercise_groupings", ["workout_id"])

    op.create_table(
        "workout_exercises",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("workout_id", sa.String(length=36), sa.ForeignKey("workout_logs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("exercise_id", sa.String(length=36), sa.ForeignKey("exercises.id"), nullable=False),
        sa.Column("exercise_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "grouping_id",
            sa.String(length=36),
            sa.ForeignKey("exercise_groupings.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("ix_workout_exercises_workout_id", "workout_exercises", ["workout_id"])
    op.create_index("ix_workout_exercises_exercise_id", "workout_exercises", ["exercise_id"])
    op.create_index("ix_workout_exercises_grouping_id", "workout_exercises", ["grouping_id"])

    op.create_table(
        "set_records",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "workout_exercise_id",
            sa.String(length=36),
            sa.ForeignKey("workout_exercises.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("set_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("set_type", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("rpe", sa.Float(), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("rest_seconds", sa.Integer(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
    )
    op.create_index("ix_set_records_workout_exercise_id", "set_records", ["workout_exercise_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_set_records_workout_exercise_id", table_name="set_records")
    op.drop_table("set_records")

    op.drop_index("ix_workout_exercises_grouping_id", table_name="workout_exercises")
    op.drop_index("ix_workout_exercises_exercise_id", table_name="workout_exercises")
    op.drop_index("ix_workout_exercises_workout_id", table_name="workout_exercises")
    op.drop_table("workout_exercises")

    op.drop_index("ix_exercise_groupings_workout_id", table_name="exercise_groupings")
    op.drop_table("exercise_groupings")

    op.drop_index("ix_workout_logs_deleted_at", table_name="workout_logs")
    op.drop_index("ix_workout_logs_user_id", table_name="workout_logs")
    op.drop_table("workout_logs")

    op.drop_table("exercises")
