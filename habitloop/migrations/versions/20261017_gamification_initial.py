"""users, habits, gamification, notifications and outbox tables

Revision ID: 20261017_gamification_initial
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261017_gamification_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("username", sa.String(length=64), unique=True),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("total_points >= 0", name="ck_user_total_points_non_negative"),
        sa.CheckConstraint("level >= 1", name="ck_user_level_positive"),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "habits_habit",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("difficulty", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("frequency", sa.String(length=16), nullable=False, server_default="DAILY"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_completions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("current_streak >= 0", name="ck_habits_habit_current_streak"),
        sa.CheckConstraint("longest_streak >= 0", name="ck_habits_habit_longest_streak"),
        sa.CheckConstraint("points > 0", name="ck_habits_habit_points_positive"),
    )
    op.create_index("ix_habits_habit_user_id", "habits_habit", ["user_id"])
    op.create_index("ix_habits_habit_user_active", "habits_habit", ["user_id", "is_active"])

    op.create_table(
        "habits_habit_completion",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column(
            "habit_id",
            sa.Integer(),
            sa.ForeignKey("habits_habit.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
        sa.Column("mood", sa.Integer()),
        sa.Column("energy", sa.Integer()),
        sa.Column("notes", sa.Text()),
    )
    op.create_index("ix_habits_habit_completion_user_id", "habits_habit_completion", ["user_id"])
    op.create_index("ix_habits_habit_completion_habit_id", "habits_habit_completion", ["habit_id"])
    op.create_index(
        "ix_habits_completion_user_completed_at",
        "habits_habit_completion",
        ["user_id", "completed_at"],
    )
    op.create_index(
        "ix_habits_completion_habit_completed_at",
        "habits_habit_completion",
        ["habit_id", "completed_at"],
    )

    op.create_table(
        "gamification_badge",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(length=32), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("rarity", sa.String(length=32), nullable=False, server_default="COMMON"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "gamification_user_badge",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column(
            "badge_id", sa.Integer(), sa.ForeignKey("gamification_badge.id"), nullable=False
        ),
        sa.Column("earned_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("is_equipped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_gamification_user_badge_user_badge"),
    )
    op.create_index("ix_gamification_user_badge_user_id", "gamification_user_badge", ["user_id"])
    op.create_index("ix_gamification_user_badge_badge_id", "gamification_user_badge", ["badge_id"])

    op.create_table(
        "gamification_daily_challenge",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("date", "type", name="uq_gamification_daily_challenge_date_type"),
    )
    op.create_index(
        "ix_gamification_daily_challenge_date", "gamification_daily_challenge", ["date"]
    )

    op.create_table(
        "gamification_daily_challenge_completion",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "challenge_id",
            sa.Integer(),
            sa.ForeignKey("gamification_daily_challenge.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "challenge_id", "user_id", name="uq_gamification_daily_challenge_completion"
        ),
    )
    op.create_index(
        "ix_gamification_daily_challenge_completion_challenge_id",
        "gamification_daily_challenge_completion",
        ["challenge_id"],
    )
    op.create_index(
        "ix_gamification_daily_challenge_completion_user_id",
        "gamification_daily_challenge_completion",
        ["user_id"],
    )

    op.create_table(
        "notifications_notification",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_notifications_notification_user_id", "notifications_notification", ["user_id"]
    )
    op.create_index(
        "ix_notifications_user_is_read", "notifications_notification", ["user_id", "is_read"]
    )
    op.create_index(
        "ix_notifications_user_created_at",
        "notifications_notification",
        ["user_id", "created_at"],
    )

    op.create_table(
        "platform_outbox",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id")),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("available_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("last_error", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_platform_outbox_user_id", "platform_outbox", ["user_id"])
    op.create_index("ix_platform_outbox_event_type", "platform_outbox", ["event_type"])
    op.create_index(
        "ix_platform_outbox_user_status",
        "platform_outbox",
        ["user_id", "status", "available_at"],
    )


def downgrade():
    op.drop_table("platform_outbox")
    op.drop_table("notifications_notification")
    op.drop_table("gamification_daily_challenge_completion")
    op.drop_table("gamification_daily_challenge")
    op.drop_table("gamification_user_badge")
    op.drop_table("gamification_badge")
    op.drop_table("habits_habit_completion")
    op.drop_table("habits_habit")
    op.drop_table("user")
