"""Habits domain event catalog."""

from __future__ import annotations

HABITS_HABIT_CREATED = "habits.habit.created"
HABITS_HABIT_UPDATED = "habits.habit.updated"
HABITS_HABIT_DEACTIVATED = "habits.habit.deactivated"
HABITS_HABIT_COMPLETED = "habits.habit.completed"

EVENT_CATALOG = {
    HABITS_HABIT_CREATED: {
        "version": "v1",
        "payload": {
            "habit_id": "int",
            "user_id": "int",
            "title": "str",
            "frequency": "str",
            "difficulty": "int",
            "points": "int",
            "created_at": "datetime",
        },
    },
    HABITS_HABIT_UPDATED: {
        "version": "v1",
        "payload": {
            "habit_id": "int",
            "user_id": "int",
            "fields": "dict",
        },
    },
    HABITS_HABIT_DEACTIVATED: {
        "version": "v1",
        "payload": {
            "habit_id": "int",
            "user_id": "int",
            "deactivated_at": "datetime",
        },
    },
    HABITS_HABIT_COMPLETED: {
        "version": "v1",
        "payload": {
            "completion_id": "int",
            "habit_id": "int",
            "user_id": "int",
            "completed_at": "datetime",
            "points": "int",
            "mood": "int?",
            "energy": "int?",
        },
    },
}

__all__ = [
    "EVENT_CATALOG",
    "HABITS_HABIT_CREATED",
    "HABITS_HABIT_UPDATED",
    "HABITS_HABIT_DEACTIVATED",
    "HABITS_HABIT_COMPLETED",
]
