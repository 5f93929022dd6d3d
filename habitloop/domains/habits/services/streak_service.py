"""Streak calculation from a habit's completion history.

The streak service is the only writer of ``Habit.current_streak`` and
``Habit.longest_streak``. ``longest_streak`` is a floor: it never moves down,
even when the trailing window no longer contains the run that set it.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Set

from flask import current_app

from habitloop.core.clock import Clock, day_window, get_clock
from habitloop.domains.habits.models.habit_models import Habit, HabitCompletion
from habitloop.extensions import db

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 365


def compute_current_streak(days: Set[date], today: date, max_days: int = DEFAULT_WINDOW_DAYS) -> int:
    """Count consecutive completed days walking back from ``today``."""
    streak = 0
    for offset in range(max_days):
        if today - timedelta(days=offset) in days:
            streak += 1
        else:
            break
    return streak


def compute_longest_streak(days: Iterable[date]) -> int:
    """Longest run of calendar days exactly one day apart."""
    best = 0
    run = 0
    previous: Optional[date] = None
    for day in sorted(set(days)):
        if previous is not None and (day - previous).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best


def recalculate_streak(habit_id: int, user_id: int, *, clock: Clock | None = None) -> Optional[Habit]:
    habit = Habit.query.filter_by(id=habit_id, user_id=user_id).first()
    if not habit:
        return None

    now = get_clock(clock).now()
    today_start, tomorrow_start = day_window(now)
    window_days = current_app.config.get("STREAK_WINDOW_DAYS", DEFAULT_WINDOW_DAYS)
    window_start = today_start - timedelta(days=window_days)

    completions: List[HabitCompletion] = (
        HabitCompletion.query.filter_by(habit_id=habit.id)
        .filter(
            HabitCompletion.completed_at >= window_start,
            HabitCompletion.completed_at < tomorrow_start,
        )
        .order_by(HabitCompletion.completed_at.asc())
        .all()
    )
    days = {_as_day(c.completed_at) for c in completions}

    current = compute_current_streak(days, today_start.date(), max_days=window_days)
    longest = compute_longest_streak(days)

    habit.current_streak = current
    habit.longest_streak = max(longest, current, habit.longest_streak or 0)
    db.session.commit()
    logger.debug(
        "Recalculated streak for habit %s: current=%s longest=%s",
        habit.id,
        habit.current_streak,
        habit.longest_streak,
    )
    return habit


def _as_day(value: datetime) -> date:
    return value.date() if isinstance(value, datetime) else value
