"""Daily challenges: per-day seeding from templates and per-user completion."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from habitloop.core.clock import Clock, day_window, get_clock
from habitloop.core.users.services import credit_points
from habitloop.domains.gamification.events import GAMIFICATION_DAILY_CHALLENGE_COMPLETED
from habitloop.domains.gamification.models.gamification_models import (
    DailyChallenge,
    DailyChallengeCompletion,
)
from habitloop.domains.gamification.services.level_service import recalculate_level
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

CHALLENGE_TEMPLATES = (
    {
        "title": "Triple Threat",
        "description": "Complete 3 habits before noon",
        "type": "TRIPLE_THREAT",
        "points": 100,
    },
    {
        "title": "Weekend Warrior",
        "description": "Keep every habit going this weekend",
        "type": "WEEKEND_WARRIOR",
        "points": 150,
    },
    {
        "title": "Early Bird Special",
        "description": "Complete a habit before 7 AM",
        "type": "EARLY_BIRD",
        "points": 75,
    },
    {
        "title": "Social Butterfly",
        "description": "Complete a habit with a friend",
        "type": "SOCIAL_BUTTERFLY",
        "points": 125,
    },
)


def _challenges_for_day(clock: Clock | None) -> List[DailyChallenge]:
    start, end = day_window(get_clock(clock).now())
    return (
        DailyChallenge.query.filter(DailyChallenge.date >= start, DailyChallenge.date < end)
        .order_by(DailyChallenge.id)
        .all()
    )


def ensure_todays_challenges(*, clock: Clock | None = None) -> List[DailyChallenge]:
    """
    Return today's challenges, creating them from the templates if none exist.

    Any existing row for today counts as "seeded"; partial sets are not topped up.
    """
    existing = _challenges_for_day(clock)
    if existing:
        return existing

    today, _ = day_window(get_clock(clock).now())
    created = [DailyChallenge(date=today, **template) for template in CHALLENGE_TEMPLATES]
    db.session.add_all(created)
    try:
        db.session.commit()
    except IntegrityError:
        # Another worker seeded the day between our read and our insert.
        db.session.rollback()
        logger.info("Daily challenges for %s were seeded concurrently", today.date())
        return _challenges_for_day(clock)

    logger.info("Seeded %s daily challenges for %s", len(created), today.date())
    return created


def get_todays_challenges(user_id: int, *, clock: Clock | None = None) -> List[dict]:
    challenges = [c for c in _challenges_for_day(clock) if c.is_active]
    if not challenges:
        return []
    done = {
        row.challenge_id
        for row in DailyChallengeCompletion.query.filter(
            DailyChallengeCompletion.user_id == user_id,
            DailyChallengeCompletion.challenge_id.in_([c.id for c in challenges]),
        ).all()
    }
    return [{"challenge": c, "is_completed": c.id in done} for c in challenges]


def _user_completion(challenge_id: int, user_id: int) -> Optional[DailyChallengeCompletion]:
    return DailyChallengeCompletion.query.filter_by(challenge_id=challenge_id, user_id=user_id).first()


def complete_daily_challenge(user_id: int, challenge_id: int) -> DailyChallengeCompletion:
    challenge = DailyChallenge.query.filter_by(id=challenge_id, is_active=True).first()
    if not challenge:
        raise ValueError("not_found")
    if _user_completion(challenge_id, user_id):
        raise ValueError("duplicate")

    completion = DailyChallengeCompletion(challenge_id=challenge_id, user_id=user_id)
    db.session.add(completion)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ValueError("duplicate")
    credit_points(user_id, challenge.points)
    enqueue_outbox(
        GAMIFICATION_DAILY_CHALLENGE_COMPLETED,
        {
            "completion_id": completion.id,
            "challenge_id": challenge.id,
            "challenge_type": challenge.type,
            "user_id": user_id,
            "points": challenge.points,
        },
        user_id=user_id,
    )
    db.session.commit()
    recalculate_level(user_id)
    return completion
