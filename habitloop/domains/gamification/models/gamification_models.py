"""Gamification models: badge catalog, earned badges, daily challenges."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship

from habitloop.extensions import db

BADGE_CATEGORIES = ("TIME", "CONSISTENCY", "POINTS", "SOCIAL", "SPECIAL")
BADGE_RARITIES = ("COMMON", "RARE", "EPIC", "LEGENDARY")
CHALLENGE_TYPES = ("TRIPLE_THREAT", "WEEKEND_WARRIOR", "EARLY_BIRD", "SOCIAL_BUTTERFLY")


class Badge(db.Model):
    __tablename__ = "gamification_badge"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(128), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(db.Text, nullable=False)
    icon: Mapped[str] = mapped_column(db.String(32), nullable=False)
    category: Mapped[str] = mapped_column(db.String(32), nullable=False)
    rarity: Mapped[str] = mapped_column(db.String(32), nullable=False, default="COMMON")
    points: Mapped[int] = mapped_column(nullable=False, default=50)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    holders: Mapped[list["UserBadge"]] = relationship("UserBadge", back_populates="badge")


class UserBadge(db.Model):
    __tablename__ = "gamification_user_badge"
    __table_args__ = (
        db.UniqueConstraint("user_id", "badge_id", name="uq_gamification_user_badge_user_badge"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    badge_id: Mapped[int] = mapped_column(
        db.ForeignKey("gamification_badge.id"), index=True, nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    is_equipped: Mapped[bool] = mapped_column(default=False)

    user: Mapped["User"] = relationship("User", back_populates="badges")  # noqa: F821
    badge: Mapped[Badge] = relationship("Badge", back_populates="holders")


class DailyChallenge(db.Model):
    __tablename__ = "gamification_daily_challenge"
    __table_args__ = (
        db.UniqueConstraint("date", "type", name="uq_gamification_daily_challenge_date_type"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(db.Text)
    type: Mapped[str] = mapped_column(db.String(32), nullable=False)
    points: Mapped[int] = mapped_column(nullable=False)
    # Midnight of the day the challenge belongs to.
    date: Mapped[datetime] = mapped_column(nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    completions: Mapped[list["DailyChallengeCompletion"]] = relationship(
        "DailyChallengeCompletion",
        back_populates="challenge",
        cascade="all, delete-orphan",
    )


class DailyChallengeCompletion(db.Model):
    __tablename__ = "gamification_daily_challenge_completion"
    __table_args__ = (
        db.UniqueConstraint(
            "challenge_id", "user_id", name="uq_gamification_daily_challenge_completion"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    challenge_id: Mapped[int] = mapped_column(
        db.ForeignKey("gamification_daily_challenge.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), index=True, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    challenge: Mapped[DailyChallenge] = relationship("DailyChallenge", back_populates="completions")
