"""Badge rule evaluation and idempotent awards."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from habitloop.core.clock import Clock, get_clock
from habitloop.core.notifications.models import BADGE_EARNED
from habitloop.core.notifications.services import create_notification
from habitloop.core.users.models import User
from habitloop.core.users.services import credit_points
from habitloop.domains.gamification.events import GAMIFICATION_BADGE_AWARDED
from habitloop.domains.gamification.models.gamification_models import Badge, UserBadge
from habitloop.domains.gamification.rules.badge_rules import (
    BADGE_RULES,
    BadgeContext,
    BadgeRule,
    matching_rules,
)
from habitloop.domains.habits.models.habit_models import Habit, HabitCompletion
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

WEEK_WINDOW_DAYS = 7


def held_badge_names(user_id: int) -> set[str]:
    rows = (
        db.session.query(Badge.name)
        .join(UserBadge, UserBadge.badge_id == Badge.id)
        .filter(UserBadge.user_id == user_id)
        .all()
    )
    return {row.name for row in rows}


def build_badge_context(user: User, *, clock: Clock | None = None) -> BadgeContext:
    now = get_clock(clock).now()
    habits = Habit.query.filter_by(user_id=user.id).all()
    week = (
        HabitCompletion.query.filter_by(user_id=user.id)
        .filter(HabitCompletion.completed_at >= now - timedelta(days=WEEK_WINDOW_DAYS))
        .all()
    )
    return BadgeContext(
        total_points=user.total_points or 0,
        habit_streaks=tuple(h.current_streak or 0 for h in habits),
        week_completions=tuple(c.completed_at for c in week),
    )


def evaluate_badges(user_id: int, *, clock: Clock | None = None) -> List[UserBadge]:
    """Award every catalog badge whose predicate holds and the user lacks."""
    user = db.session.get(User, user_id)
    if not user:
        return []

    ctx = build_badge_context(user, clock=clock)
    held = held_badge_names(user_id)
    awarded: List[UserBadge] = []
    for rule in matching_rules(ctx, BADGE_RULES):
        if rule.name in held:
            continue
        user_badge = award_badge(user_id, rule)
        if user_badge:
            awarded.append(user_badge)
    return awarded


def _held_user_badge(user_id: int, badge_name: str) -> Optional[UserBadge]:
    return (
        UserBadge.query.join(Badge, UserBadge.badge_id == Badge.id)
        .filter(UserBadge.user_id == user_id, Badge.name == badge_name)
        .first()
    )


def _catalog_badge(name: str) -> Optional[Badge]:
    return Badge.query.filter_by(name=name).first()


def award_badge(user_id: int, rule: BadgeRule) -> Optional[UserBadge]:
    """
    Give ``rule``'s badge to the user once.

    The badge row, the points and the notification are committed together. A
    unique violation on the user's badge means a concurrent award won and this
    one is discarded; a violation on the catalog row means another user's award
    created it first, so the award is retried once against that row.
    """
    if _held_user_badge(user_id, rule.name):
        return None

    for attempt in range(2):
        try:
            user_badge = _award_in_transaction(user_id, rule)
        except IntegrityError:
            db.session.rollback()
            if attempt == 0 and not _held_user_badge(user_id, rule.name):
                logger.info("Badge %r catalog row created concurrently; retrying", rule.name)
                continue
            logger.info("Badge %r already awarded to user %s; skipping", rule.name, user_id)
            return None
        logger.info(
            "Awarded badge %r (+%s points) to user %s",
            rule.name,
            user_badge.badge.points,
            user_id,
        )
        return user_badge
    return None


def _award_in_transaction(user_id: int, rule: BadgeRule) -> UserBadge:
    badge = _catalog_badge(rule.name)
    if not badge:
        badge = Badge(
            name=rule.name,
            description=rule.description,
            icon=rule.icon,
            category=rule.category,
            rarity=rule.rarity,
            points=rule.points,
        )
        db.session.add(badge)
        db.session.flush()

    user_badge = UserBadge(user_id=user_id, badge_id=badge.id)
    db.session.add(user_badge)
    db.session.flush()
    credit_points(user_id, badge.points)
    create_notification(
        user_id,
        BADGE_EARNED,
        title="New badge unlocked!",
        message=f'Congratulations! You unlocked the "{badge.name}" badge',
        data={"badgeId": badge.id, "badgeName": badge.name, "badgeIcon": badge.icon},
    )
    enqueue_outbox(
        GAMIFICATION_BADGE_AWARDED,
        {
            "user_badge_id": user_badge.id,
            "badge_id": badge.id,
            "badge_name": badge.name,
            "user_id": user_id,
            "points": badge.points,
        },
        user_id=user_id,
    )
    db.session.commit()
    return user_badge


def list_user_badges(user_id: int) -> List[UserBadge]:
    return (
        UserBadge.query.filter_by(user_id=user_id)
        .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
        .all()
    )
