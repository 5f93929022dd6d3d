"""Gamification periodic jobs, triggered externally (cron or scheduler)."""

from __future__ import annotations

import logging
from typing import Dict

from habitloop.core.clock import Clock

logger = logging.getLogger(__name__)


def run_daily_challenge_seed(clock: Clock | None = None) -> Dict[str, object]:
    """
    Make sure today's daily challenges exist.

    Safe to call any number of times per day (e.g. hourly).

    Returns:
        Dict with the seeded date and the challenge ids
    """
    from habitloop.domains.gamification.services.challenge_service import (
        ensure_todays_challenges,
    )

    challenges = ensure_todays_challenges(clock=clock)
    stats = {
        "date": challenges[0].date.date().isoformat() if challenges else None,
        "challenge_ids": [c.id for c in challenges],
    }
    logger.info(f"Daily challenge seed complete: {stats}")
    return stats


def run_streak_reminders(clock: Clock | None = None) -> Dict[str, int]:
    """
    Send evening reminders for streaks at risk.

    Call this periodically during the evening (e.g. hourly from 20:00). Repeat
    calls within one evening send repeat reminders.

    Returns:
        Dict with the number of reminders and distinct users notified
    """
    from habitloop.domains.gamification.services.reminder_service import scan_and_notify

    notifications = scan_and_notify(clock=clock)
    stats = {
        "reminders": len(notifications),
        "users": len({n.user_id for n in notifications}),
    }
    logger.info(f"Streak reminder run complete: {stats}")
    return stats
