"""Tests for the badge catalog predicates and idempotent awards."""

from datetime import datetime, timedelta

import pytest

from habitloop.core.notifications.models import BADGE_EARNED, Notification
from habitloop.domains.gamification.events import GAMIFICATION_BADGE_AWARDED
from habitloop.domains.gamification.models.gamification_models import Badge, UserBadge
from habitloop.domains.gamification.rules.badge_rules import (
    BADGE_RULES,
    RULES_BY_NAME,
    BadgeContext,
    matching_rules,
)
from habitloop.domains.gamification.services import badge_service
from habitloop.domains.gamification.services.badge_service import (
    award_badge,
    evaluate_badges,
    held_badge_names,
    list_user_badges,
)
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import pending_messages
from habitloop.tests.helpers import NOW


@pytest.mark.unit
class TestBadgeRules:
    """Each predicate in isolation."""

    def _ctx(self, **fields):
        fields.setdefault("total_points", 0)
        return BadgeContext(**fields)

    def test_catalog_names_are_unique(self):
        names = [rule.name for rule in BADGE_RULES]
        assert len(names) == len(set(names))
        assert set(names) == {"Early Bird", "Consistency King", "Point Master", "Weekend Warrior"}

    def test_early_bird_before_seven(self):
        rule = RULES_BY_NAME["Early Bird"]
        assert rule.predicate(self._ctx(week_completions=(datetime(2026, 10, 13, 6, 59),)))
        assert not rule.predicate(self._ctx(week_completions=(datetime(2026, 10, 13, 7, 0),)))

    def test_consistency_king_thirty_days(self):
        rule = RULES_BY_NAME["Consistency King"]
        assert rule.predicate(self._ctx(habit_streaks=(3, 30)))
        assert not rule.predicate(self._ctx(habit_streaks=(29,)))

    def test_point_master_threshold(self):
        rule = RULES_BY_NAME["Point Master"]
        assert rule.predicate(self._ctx(total_points=1000))
        assert not rule.predicate(self._ctx(total_points=999))

    def test_weekend_warrior_saturday_or_sunday(self):
        rule = RULES_BY_NAME["Weekend Warrior"]
        saturday = datetime(2026, 10, 10, 12, 0)
        sunday = datetime(2026, 10, 11, 12, 0)
        monday = datetime(2026, 10, 12, 12, 0)
        assert rule.predicate(self._ctx(week_completions=(saturday,)))
        assert rule.predicate(self._ctx(week_completions=(sunday,)))
        assert not rule.predicate(self._ctx(week_completions=(monday,)))

    def test_matching_rules_empty_state(self):
        assert matching_rules(self._ctx()) == []


@pytest.mark.integration
class TestEvaluateBadges:
    """Badge evaluation against persisted user state."""

    def test_point_master_awarded_once(self, app, make_user):
        user = make_user(total_points=1200)

        first = evaluate_badges(user.id)
        second = evaluate_badges(user.id)

        assert [ub.badge.name for ub in first] == ["Point Master"]
        assert second == []
        assert UserBadge.query.filter_by(user_id=user.id).count() == 1
        db.session.refresh(user)
        assert user.total_points == 1250

    def test_award_creates_notification(self, app, make_user):
        user = make_user(total_points=1000)

        awarded = evaluate_badges(user.id)

        badge = awarded[0].badge
        notes = Notification.query.filter_by(user_id=user.id, type=BADGE_EARNED).all()
        assert len(notes) == 1
        assert notes[0].data == {
            "badgeId": badge.id,
            "badgeName": "Point Master",
            "badgeIcon": badge.icon,
        }

    def test_award_stages_outbox_event(self, app, make_user):
        user = make_user(total_points=1000)

        evaluate_badges(user.id)

        events = pending_messages(GAMIFICATION_BADGE_AWARDED)
        assert len(events) == 1
        assert events[0].payload["badge_name"] == "Point Master"
        assert events[0].user_id == user.id

    def test_early_bird_from_recent_completion(self, app, test_user, make_habit, add_completion):
        habit = make_habit(test_user)
        add_completion(habit, datetime(2026, 10, 13, 6, 30))

        awarded = evaluate_badges(test_user.id)

        assert {ub.badge.name for ub in awarded} == {"Early Bird"}

    def test_early_bird_ignores_old_completion(self, app, test_user, make_habit, add_completion):
        habit = make_habit(test_user)
        add_completion(habit, NOW - timedelta(days=10, hours=8))

        assert evaluate_badges(test_user.id) == []

    def test_weekend_warrior(self, app, test_user, make_habit, add_completion):
        habit = make_habit(test_user)
        add_completion(habit, datetime(2026, 10, 11, 10, 0))

        awarded = evaluate_badges(test_user.id)

        assert {ub.badge.name for ub in awarded} == {"Weekend Warrior"}

    def test_consistency_king_from_streak(self, app, test_user, make_habit):
        make_habit(test_user, current_streak=30, longest_streak=30)

        awarded = evaluate_badges(test_user.id)

        assert {ub.badge.name for ub in awarded} == {"Consistency King"}

    def test_catalog_row_reused_across_users(self, app, make_user, make_habit, add_completion):
        early = datetime(2026, 10, 13, 5, 45)
        for _ in range(2):
            user = make_user()
            add_completion(make_habit(user), early)
            evaluate_badges(user.id)

        assert Badge.query.filter_by(name="Early Bird").count() == 1
        badge = Badge.query.filter_by(name="Early Bird").one()
        assert UserBadge.query.filter_by(badge_id=badge.id).count() == 2

    def test_first_award_uses_catalog_metadata(self, app, make_user):
        user = make_user(total_points=5000)
        evaluate_badges(user.id)

        badge = Badge.query.filter_by(name="Point Master").one()
        assert badge.category == "POINTS"
        assert badge.rarity == "COMMON"
        assert badge.points == 50

    def test_unknown_user(self, app):
        assert evaluate_badges(99999) == []


@pytest.mark.integration
class TestAwardBadge:
    """Direct award calls and their guards."""

    def test_award_already_held_is_noop(self, app, make_user):
        user = make_user()
        rule = RULES_BY_NAME["Weekend Warrior"]

        assert award_badge(user.id, rule) is not None
        assert award_badge(user.id, rule) is None

        db.session.refresh(user)
        assert user.total_points == 50
        assert held_badge_names(user.id) == {"Weekend Warrior"}
        assert Notification.query.filter_by(user_id=user.id).count() == 1

    def test_list_user_badges(self, app, make_user):
        user = make_user()
        award_badge(user.id, RULES_BY_NAME["Early Bird"])
        award_badge(user.id, RULES_BY_NAME["Point Master"])

        names = {ub.badge.name for ub in list_user_badges(user.id)}
        assert names == {"Early Bird", "Point Master"}


@pytest.mark.integration
class TestAwardConflicts:
    """Awards that lose a race against a concurrent writer."""

    def test_lost_race_on_user_badge_is_noop(self, app, make_user, monkeypatch):
        user = make_user(total_points=1000)
        rule = RULES_BY_NAME["Point Master"]
        assert award_badge(user.id, rule) is not None

        # The existence check misses, so only the unique constraint stops the insert.
        monkeypatch.setattr(badge_service, "_held_user_badge", lambda *_: None)

        assert award_badge(user.id, rule) is None
        db.session.refresh(user)
        assert user.total_points == 1050
        assert UserBadge.query.filter_by(user_id=user.id).count() == 1
        assert Notification.query.filter_by(user_id=user.id, type=BADGE_EARNED).count() == 1
        assert len(pending_messages(GAMIFICATION_BADGE_AWARDED)) == 1

    def test_catalog_row_created_concurrently_is_retried(self, app, make_user, monkeypatch):
        first_user = make_user()
        second_user = make_user()
        rule = RULES_BY_NAME["Early Bird"]
        award_badge(first_user.id, rule)

        real_lookup = badge_service._catalog_badge
        calls = {"n": 0}

        def stale_lookup(name):
            calls["n"] += 1
            return None if calls["n"] == 1 else real_lookup(name)

        monkeypatch.setattr(badge_service, "_catalog_badge", stale_lookup)

        user_badge = award_badge(second_user.id, rule)

        assert user_badge is not None
        assert calls["n"] == 2
        assert Badge.query.filter_by(name="Early Bird").count() == 1
        db.session.refresh(second_user)
        assert second_user.total_points == 50
        assert held_badge_names(second_user.id) == {"Early Bird"}
