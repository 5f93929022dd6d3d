"""Level derivation from cumulative points (a one-way ratchet)."""

from __future__ import annotations

import logging
from typing import Optional

from flask import current_app

from habitloop.core.notifications.models import ACHIEVEMENT
from habitloop.core.notifications.services import create_notification
from habitloop.core.users.models import User
from habitloop.domains.gamification.events import GAMIFICATION_LEVEL_UP
from habitloop.domains.gamification.schemas.gamification_schemas import LevelProgress
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

DEFAULT_POINTS_PER_LEVEL = 1000


def _points_per_level() -> int:
    return int(current_app.config.get("POINTS_PER_LEVEL", DEFAULT_POINTS_PER_LEVEL))


def level_for_points(points: int, points_per_level: int = DEFAULT_POINTS_PER_LEVEL) -> int:
    # Negative totals are treated as zero rather than producing level <= 0.
    return max(points or 0, 0) // points_per_level + 1


def recalculate_level(user_id: int) -> Optional[User]:
    """Raise the stored level if points allow it; return the user only on a level-up."""
    user = db.session.get(User, user_id)
    if not user:
        return None

    old_level = user.level or 1
    new_level = level_for_points(user.total_points, _points_per_level())
    if new_level <= old_level:
        return None

    user.level = new_level
    create_notification(
        user_id,
        ACHIEVEMENT,
        title="Level reached!",
        message=f"Congratulations! You are now level {new_level}",
        data={"newLevel": new_level, "oldLevel": old_level},
    )
    enqueue_outbox(
        GAMIFICATION_LEVEL_UP,
        {
            "user_id": user_id,
            "old_level": old_level,
            "new_level": new_level,
            "total_points": user.total_points,
        },
        user_id=user_id,
    )
    db.session.commit()
    logger.info("User %s levelled up: %s -> %s", user_id, old_level, new_level)
    return user


def get_level_progress(user_id: int) -> Optional[LevelProgress]:
    user = db.session.get(User, user_id)
    if not user:
        return None
    per_level = _points_per_level()
    points_for_next = user.level * per_level
    points_for_current = (user.level - 1) * per_level
    progress = (user.total_points - points_for_current) / (points_for_next - points_for_current) * 100
    return LevelProgress(
        level=user.level,
        total_points=user.total_points,
        points_for_next_level=points_for_next,
        progress=min(100.0, max(0.0, round(progress, 1))),
    )
