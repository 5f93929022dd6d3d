"""Badge catalog: each rule pairs catalog metadata with a predicate."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Sequence

EARLY_BIRD_HOUR = 7
CONSISTENCY_STREAK_DAYS = 30
POINT_MASTER_THRESHOLD = 1000
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday


@dataclass(frozen=True)
class BadgeContext:
    """Snapshot of a user's state the predicates read from."""

    total_points: int
    habit_streaks: Sequence[int] = field(default_factory=tuple)
    # completed_at values of the trailing 7 days.
    week_completions: Sequence[datetime] = field(default_factory=tuple)


@dataclass(frozen=True)
class BadgeRule:
    name: str
    description: str
    icon: str
    category: str
    predicate: Callable[[BadgeContext], bool]
    rarity: str = "COMMON"
    points: int = 50


def _early_bird(ctx: BadgeContext) -> bool:
    return any(ts.hour < EARLY_BIRD_HOUR for ts in ctx.week_completions)


def _consistency_king(ctx: BadgeContext) -> bool:
    return any(streak >= CONSISTENCY_STREAK_DAYS for streak in ctx.habit_streaks)


def _point_master(ctx: BadgeContext) -> bool:
    return ctx.total_points >= POINT_MASTER_THRESHOLD


def _weekend_warrior(ctx: BadgeContext) -> bool:
    return any(ts.weekday() in WEEKEND_DAYS for ts in ctx.week_completions)


BADGE_RULES: List[BadgeRule] = [
    BadgeRule(
        name="Early Bird",
        description="Completed a habit before 7 AM",
        icon="🌅",
        category="TIME",
        predicate=_early_bird,
    ),
    BadgeRule(
        name="Consistency King",
        description="Kept a 30-day streak going",
        icon="👑",
        category="CONSISTENCY",
        predicate=_consistency_king,
    ),
    BadgeRule(
        name="Point Master",
        description="Reached 1000 points",
        icon="⭐",
        category="POINTS",
        predicate=_point_master,
    ),
    BadgeRule(
        name="Weekend Warrior",
        description="Completed habits on the weekend",
        icon="💪",
        category="CONSISTENCY",
        predicate=_weekend_warrior,
    ),
]

RULES_BY_NAME = {rule.name: rule for rule in BADGE_RULES}


def matching_rules(ctx: BadgeContext, rules: Sequence[BadgeRule] = BADGE_RULES) -> List[BadgeRule]:
    return [rule for rule in rules if rule.predicate(ctx)]
