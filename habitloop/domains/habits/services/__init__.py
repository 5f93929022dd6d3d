"""Habit services: CRUD, completions, and analytics with outbox events."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, List, Optional

from pydantic import ValidationError

from habitloop.core.clock import Clock, day_window, get_clock
from habitloop.core.users.models import User
from habitloop.core.users.services import credit_points
from habitloop.domains.gamification.services.badge_service import evaluate_badges
from habitloop.domains.gamification.services.level_service import recalculate_level
from habitloop.domains.habits.events import (
    HABITS_HABIT_COMPLETED,
    HABITS_HABIT_CREATED,
    HABITS_HABIT_DEACTIVATED,
    HABITS_HABIT_UPDATED,
)
from habitloop.domains.habits.models.habit_models import (
    POINTS_PER_DIFFICULTY,
    Habit,
    HabitCompletion,
)
from habitloop.domains.habits.schemas.habit_schemas import (
    HabitCompletionCreate,
    HabitCreate,
    HabitUpdate,
)
from habitloop.domains.habits.services.streak_service import (
    compute_current_streak,
    recalculate_streak,
)
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)


def create_habit(
    user_id: int,
    *,
    title: str,
    description: str | None = None,
    difficulty: int = 1,
    frequency: str = "DAILY",
) -> Habit:
    try:
        data = HabitCreate(
            title=(title or "").strip(),
            description=(description or "").strip() or None,
            difficulty=difficulty,
            frequency=frequency,
        )
    except ValidationError:
        raise ValueError("validation_error")
    if not db.session.get(User, user_id):
        raise ValueError("not_found")

    habit = Habit(
        user_id=user_id,
        title=data.title,
        description=data.description,
        difficulty=data.difficulty,
        frequency=data.frequency,
        points=data.difficulty * POINTS_PER_DIFFICULTY,
    )
    db.session.add(habit)
    db.session.flush()
    enqueue_outbox(
        HABITS_HABIT_CREATED,
        {
            "habit_id": habit.id,
            "user_id": user_id,
            "title": habit.title,
            "frequency": habit.frequency,
            "difficulty": habit.difficulty,
            "points": habit.points,
            "created_at": habit.created_at.isoformat(),
        },
        user_id=user_id,
    )
    db.session.commit()
    return habit


def update_habit(user_id: int, habit_id: int, **fields) -> Optional[Habit]:
    habit = Habit.query.filter_by(id=habit_id, user_id=user_id).first()
    if not habit:
        return None
    try:
        data = HabitUpdate.model_validate(fields)
    except ValidationError:
        raise ValueError("validation_error")

    changed: Dict[str, object] = {}
    for key, val in data.model_dump(exclude_none=True).items():
        if isinstance(val, str):
            val = val.strip()
        setattr(habit, key, val)
        changed[key] = val
    if "difficulty" in changed:
        habit.points = habit.difficulty * POINTS_PER_DIFFICULTY
        changed["points"] = habit.points
    enqueue_outbox(
        HABITS_HABIT_UPDATED,
        {"habit_id": habit.id, "user_id": user_id, "fields": changed},
        user_id=user_id,
    )
    db.session.commit()
    return habit


def deactivate_habit(user_id: int, habit_id: int, *, clock: Clock | None = None) -> Optional[Habit]:
    habit = Habit.query.filter_by(id=habit_id, user_id=user_id).first()
    if not habit:
        return None
    habit.is_active = False
    enqueue_outbox(
        HABITS_HABIT_DEACTIVATED,
        {
            "habit_id": habit.id,
            "user_id": user_id,
            "deactivated_at": get_clock(clock).now().isoformat(),
        },
        user_id=user_id,
    )
    db.session.commit()
    return habit


def complete_habit(
    user_id: int,
    habit_id: int,
    *,
    notes: str | None = None,
    mood: int | None = None,
    energy: int | None = None,
    clock: Clock | None = None,
) -> dict:
    """
    Record today's completion, credit points, then refresh streak, badges and level.

    Streak runs first because badge predicates read the fresh streak, and level
    runs last because badge awards add points.
    """
    try:
        data = HabitCompletionCreate(notes=notes, mood=mood, energy=energy)
    except ValidationError:
        raise ValueError("validation_error")

    habit = Habit.query.filter_by(id=habit_id, user_id=user_id).first()
    if not habit:
        raise ValueError("not_found")
    if not habit.is_active:
        raise ValueError("inactive")

    clock = get_clock(clock)
    now = clock.now()
    today_start, tomorrow_start = day_window(now)
    already_done = (
        HabitCompletion.query.filter_by(habit_id=habit_id, user_id=user_id)
        .filter(
            HabitCompletion.completed_at >= today_start,
            HabitCompletion.completed_at < tomorrow_start,
        )
        .first()
    )
    if already_done:
        raise ValueError("duplicate")

    completion = HabitCompletion(
        user_id=user_id,
        habit_id=habit_id,
        completed_at=now,
        mood=data.mood,
        energy=data.energy,
        notes=(data.notes or "").strip() or None,
    )
    db.session.add(completion)
    db.session.query(Habit).filter(Habit.id == habit_id).update(
        {Habit.total_completions: Habit.total_completions + 1}
    )
    credit_points(user_id, habit.points)
    db.session.flush()
    enqueue_outbox(
        HABITS_HABIT_COMPLETED,
        {
            "completion_id": completion.id,
            "habit_id": habit_id,
            "user_id": user_id,
            "completed_at": now.isoformat(),
            "points": habit.points,
            "mood": completion.mood,
            "energy": completion.energy,
        },
        user_id=user_id,
    )
    db.session.commit()

    habit = recalculate_streak(habit_id, user_id, clock=clock)
    badges = evaluate_badges(user_id, clock=clock)
    level_up = recalculate_level(user_id)
    logger.info(
        "Habit %s completed by user %s (streak=%s, badges=%s, level_up=%s)",
        habit_id,
        user_id,
        habit.current_streak if habit else None,
        len(badges),
        bool(level_up),
    )
    return {
        "completion": completion,
        "habit": habit,
        "badges": badges,
        "level_up": level_up,
    }


def _calendar_window(now, window_days: int):
    """``[midnight window_days - 1 days ago, tomorrow)``: exactly ``window_days`` calendar days."""
    today_start, tomorrow_start = day_window(now)
    return today_start - timedelta(days=window_days - 1), tomorrow_start


def get_habit_analytics(
    user_id: int,
    habit_id: int,
    *,
    window_days: int = 30,
    clock: Clock | None = None,
) -> Optional[dict]:
    habit = Habit.query.filter_by(id=habit_id, user_id=user_id).first()
    if not habit:
        return None
    window_days = max(window_days, 1)
    now = get_clock(clock).now()
    window_start, window_end = _calendar_window(now, window_days)
    completions = (
        HabitCompletion.query.filter_by(habit_id=habit_id)
        .filter(
            HabitCompletion.completed_at >= window_start,
            HabitCompletion.completed_at < window_end,
        )
        .order_by(HabitCompletion.completed_at.asc())
        .all()
    )
    days = {c.completed_at.date() for c in completions}
    return {
        "habit": habit,
        "current_streak": compute_current_streak(days, now.date()),
        "total_completions": habit.total_completions,
        "success_rate": round(len(days) / window_days * 100, 1),
        "completions": [
            {
                "date": c.completed_at,
                "mood": c.mood,
                "energy": c.energy,
                "notes": c.notes,
            }
            for c in completions
        ],
    }


def _average(values: List[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


def get_user_stats(
    user_id: int,
    *,
    window_days: int = 30,
    clock: Clock | None = None,
) -> Optional[dict]:
    """Aggregate streak and completion figures across all of a user's habits."""
    if not db.session.get(User, user_id):
        return None
    window_days = max(window_days, 1)
    habits = Habit.query.filter_by(user_id=user_id).all()
    window_start, window_end = _calendar_window(get_clock(clock).now(), window_days)
    recent = (
        HabitCompletion.query.filter_by(user_id=user_id)
        .filter(
            HabitCompletion.completed_at >= window_start,
            HabitCompletion.completed_at < window_end,
        )
        .all()
    )

    total_habits = len(habits)
    possible = total_habits * window_days
    return {
        "total_habits": total_habits,
        "total_completions": sum(h.total_completions or 0 for h in habits),
        "habit_points": sum((h.points or 0) * (h.total_completions or 0) for h in habits),
        "average_streak": _average([h.current_streak or 0 for h in habits]),
        "longest_streak": max((h.longest_streak or 0 for h in habits), default=0),
        "success_rate": round(len(recent) / possible * 100, 1) if possible else 0.0,
        "average_mood": _average([c.mood for c in recent if c.mood is not None]),
        "average_energy": _average([c.energy for c in recent if c.energy is not None]),
        "recent_completions": len(recent),
    }
