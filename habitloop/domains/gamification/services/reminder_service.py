"""Evening reminders for habits whose streak will break at midnight."""

from __future__ import annotations

import logging
from typing import List

from flask import current_app
from sqlalchemy import select

from habitloop.core.clock import Clock, day_window, get_clock
from habitloop.core.notifications.models import STREAK_REMINDER, Notification
from habitloop.core.notifications.services import create_notification
from habitloop.domains.habits.models.habit_models import Habit, HabitCompletion
from habitloop.extensions import db

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_HOUR = 20


def find_streaks_at_risk(*, clock: Clock | None = None) -> List[Habit]:
    """Active habits with a running streak and no completion yet today."""
    start, end = day_window(get_clock(clock).now())
    completed_today = select(HabitCompletion.habit_id).where(
        HabitCompletion.completed_at >= start, HabitCompletion.completed_at < end
    )
    return (
        Habit.query.filter(
            Habit.is_active.is_(True),
            Habit.current_streak > 0,
            Habit.id.notin_(completed_today),
        )
        .order_by(Habit.user_id, Habit.id)
        .all()
    )


def scan_and_notify(*, clock: Clock | None = None) -> List[Notification]:
    """
    Emit one STREAK_REMINDER per at-risk habit once the evening cutoff has passed.

    Holds no state: calling it twice in the same evening sends two reminders.
    """
    now = get_clock(clock).now()
    cutoff = current_app.config.get("STREAK_REMINDER_HOUR", DEFAULT_REMINDER_HOUR)
    if now.hour < cutoff:
        return []

    notifications: List[Notification] = []
    for habit in find_streaks_at_risk(clock=clock):
        notifications.append(
            create_notification(
                habit.user_id,
                STREAK_REMINDER,
                title="Streak in danger!",
                message=f'Your {habit.current_streak}-day streak for "{habit.title}" is in danger!',
                data={
                    "habitId": habit.id,
                    "habitTitle": habit.title,
                    "currentStreak": habit.current_streak,
                },
            )
        )
    db.session.commit()
    logger.info("Sent %s streak reminders", len(notifications))
    return notifications
