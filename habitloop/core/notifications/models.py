"""Notification records created as side effects of gamification events."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from habitloop.extensions import db

STREAK_REMINDER = "STREAK_REMINDER"
BADGE_EARNED = "BADGE_EARNED"
FRIEND_REQUEST = "FRIEND_REQUEST"
CHALLENGE_INVITATION = "CHALLENGE_INVITATION"
DAILY_CHALLENGE = "DAILY_CHALLENGE"
ACHIEVEMENT = "ACHIEVEMENT"
SOCIAL_ACTIVITY = "SOCIAL_ACTIVITY"
SYSTEM = "SYSTEM"

NOTIFICATION_TYPES = (
    STREAK_REMINDER,
    BADGE_EARNED,
    FRIEND_REQUEST,
    CHALLENGE_INVITATION,
    DAILY_CHALLENGE,
    ACHIEVEMENT,
    SOCIAL_ACTIVITY,
    SYSTEM,
)


class Notification(db.Model):
    __tablename__ = "notifications_notification"
    __table_args__ = (
        db.Index("ix_notifications_user_is_read", "user_id", "is_read"),
        db.Index("ix_notifications_user_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    type: Mapped[str] = mapped_column(db.String(32), nullable=False)
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    message: Mapped[str] = mapped_column(db.Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(db.JSON)
    is_read: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
