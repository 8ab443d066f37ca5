"""initial lift schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_user",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "lift",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Text(),
            sa.ForeignKey("app_user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exercise", sa.Text(), nullable=False),
        sa.Column("weight_kg", sa.Float(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("lift_date", sa.Date(), nullable=False),
        sa.Column("workout_type", sa.Text()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("reps > 0", name="ck_lift_reps_positive"),
        sa.CheckConstraint("sets > 0", name="ck_lift_sets_positive"),
        sa.CheckConstraint("weight_kg >= 0", name="ck_lift_weight_nonnegative"),
    )
    op.create_index(
        "ix_lift_user_date",
        "lift",
        ["user_id", sa.text("lift_date DESC")],
    )
    op.create_index(
        "ix_lift_user_workout_type",
        "lift",
        ["user_id", "workout_type"],
    )


def downgrade() -> None:
    op.drop_index("ix_lift_user_workout_type", table_name="lift")
    op.drop_index("ix_lift_user_date", table_name="lift")
    op.drop_table("lift")
    op.drop_table("app_user")
