"""User model with gamification totals."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitloop.extensions import db


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)


class User(db.Model, TimestampMixin):
    __tablename__ = "user"
    __table_args__ = (
        db.CheckConstraint("total_points >= 0", name="ck_user_total_points_non_negative"),
        db.CheckConstraint("level >= 1", name="ck_user_level_positive"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str | None] = mapped_column(db.String(255))
    username: Mapped[str | None] = mapped_column(db.String(64), unique=True)
    # Points are credited through SQL increments; level is owned by the level service.
    total_points: Mapped[int] = mapped_column(nullable=False, default=0)
    level: Mapped[int] = mapped_column(nullable=False, default=1)

    habits: Mapped[list["Habit"]] = relationship(  # noqa: F821
        "Habit", back_populates="user", cascade="all, delete-orphan"
    )
    badges: Mapped[list["UserBadge"]] = relationship(  # noqa: F821
        "UserBadge", back_populates="user", cascade="all, delete-orphan"
    )
