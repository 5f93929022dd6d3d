"""Habits models with prefixed tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitloop.extensions import db

FREQUENCIES = ("DAILY", "WEEKLY", "MONTHLY", "CUSTOM")
POINTS_PER_DIFFICULTY = 10


class Habit(db.Model):
    __tablename__ = "habits_habit"
    __table_args__ = (
        db.Index("ix_habits_habit_user_active", "user_id", "is_active"),
        db.CheckConstraint("current_streak >= 0", name="ck_habits_habit_current_streak"),
        db.CheckConstraint("longest_streak >= 0", name="ck_habits_habit_longest_streak"),
        db.CheckConstraint("points > 0", name="ck_habits_habit_points_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text)
    difficulty: Mapped[int] = mapped_column(nullable=False, default=1)
    frequency: Mapped[str] = mapped_column(db.String(16), nullable=False, default="DAILY")
    points: Mapped[int] = mapped_column(nullable=False, default=POINTS_PER_DIFFICULTY)
    # Cached streak values; only the streak service writes these.
    current_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    total_completions: Mapped[int] = mapped_column(nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="habits")  # noqa: F821
    completions: Mapped[list["HabitCompletion"]] = relationship(
        "HabitCompletion",
        back_populates="habit",
        cascade="all, delete-orphan",
    )


class HabitCompletion(db.Model):
    __tablename__ = "habits_habit_completion"
    __table_args__ = (
        db.Index("ix_habits_completion_user_completed_at", "user_id", "completed_at"),
        db.Index("ix_habits_completion_habit_completed_at", "habit_id", "completed_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    habit_id: Mapped[int] = mapped_column(
        db.ForeignKey("habits_habit.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    completed_at: Mapped[datetime] = mapped_column(nullable=False)
    mood: Mapped[int | None] = mapped_column(nullable=True)
    energy: Mapped[int | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(db.Text)

    habit: Mapped[Habit] = relationship("Habit", back_populates="completions")
