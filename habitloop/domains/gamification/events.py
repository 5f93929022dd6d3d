"""Gamification domain event catalog."""

from __future__ import annotations

GAMIFICATION_BADGE_AWARDED = "gamification.badge.awarded"
GAMIFICATION_LEVEL_UP = "gamification.level.up"
GAMIFICATION_DAILY_CHALLENGE_COMPLETED = "gamification.daily_challenge.completed"

EVENT_CATALOG = {
    GAMIFICATION_BADGE_AWARDED: {
        "version": "v1",
        "payload": {
            "user_badge_id": "int",
            "badge_id": "int",
            "badge_name": "str",
            "user_id": "int",
            "points": "int",
        },
    },
    GAMIFICATION_LEVEL_UP: {
        "version": "v1",
        "payload": {
            "user_id": "int",
            "old_level": "int",
            "new_level": "int",
            "total_points": "int",
        },
    },
    GAMIFICATION_DAILY_CHALLENGE_COMPLETED: {
        "version": "v1",
        "payload": {
            "completion_id": "int",
            "challenge_id": "int",
            "challenge_type": "str",
            "user_id": "int",
            "points": "int",
        },
    },
}

__all__ = [
    "EVENT_CATALOG",
    "GAMIFICATION_BADGE_AWARDED",
    "GAMIFICATION_LEVEL_UP",
    "GAMIFICATION_DAILY_CHALLENGE_COMPLETED",
]
