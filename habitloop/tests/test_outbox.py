"""Tests for the transactional outbox and its dispatcher."""

from datetime import datetime, timedelta

import pytest

from habitloop.core.events.event_bus import EventBus
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox import (
    EventBusAdapter,
    OutboxMessage,
    dispatch_ready,
    enqueue,
    pending_messages,
    purge_sent,
)
from habitloop.habitloop_platform.outbox.tasks import run_outbox_dispatch

pytestmark = pytest.mark.integration


class TestEnqueue:
    def test_enqueue_is_staged_until_commit(self, app, test_user):
        enqueue("habits.habit.completed", {"habit_id": 1}, user_id=test_user.id)
        db.session.rollback()
        assert OutboxMessage.query.count() == 0

        enqueue("habits.habit.completed", {"habit_id": 1}, user_id=test_user.id)
        db.session.commit()
        assert len(pending_messages()) == 1

    def test_pending_messages_filters_by_type(self, app, test_user):
        enqueue("gamification.level.up", {"new_level": 2}, user_id=test_user.id)
        enqueue("gamification.badge.awarded", {"badge_name": "Early Bird"}, user_id=test_user.id)
        db.session.commit()

        level_events = pending_messages("gamification.level.up")

        assert [m.payload for m in level_events] == [{"new_level": 2}]
        assert level_events[0].status == "pending"


class TestDispatch:
    """Draining ready messages to the event bus."""

    def test_dispatch_publishes_and_marks_sent(self, app, test_user):
        bus = EventBus()
        received = []
        bus.subscribe("gamification.level.up", received.append)
        message = enqueue("gamification.level.up", {"new_level": 2}, user_id=test_user.id)
        enqueue("habits.habit.completed", {"habit_id": 7}, user_id=test_user.id)
        db.session.commit()

        sent, failed = dispatch_ready(bus_adapter=EventBusAdapter(bus))

        assert len(sent) == 2
        assert failed == []
        assert [e.payload for e in received] == [{"new_level": 2}]
        assert received[0].event_id == message.id
        assert received[0].user_id == test_user.id
        assert pending_messages() == []
        statuses = {m.status for m in OutboxMessage.query.all()}
        assert statuses == {"sent"}

    def test_failed_handler_schedules_retry(self, app, test_user):
        bus = EventBus()

        def broken(event):
            raise RuntimeError("subscriber down")

        bus.subscribe("gamification.badge.awarded", broken)
        enqueue("gamification.badge.awarded", {"badge_name": "Early Bird"}, user_id=test_user.id)
        db.session.commit()

        sent, failed = dispatch_ready(bus_adapter=EventBusAdapter(bus))

        message = OutboxMessage.query.one()
        assert sent == []
        assert failed == [message.id]
        assert message.status == "retry"
        assert message.attempts == 1
        assert message.last_error == "subscriber down"
        assert message.available_at > datetime.utcnow()
        # Not ready again until the retry delay passes.
        assert dispatch_ready(bus_adapter=EventBusAdapter(bus)) == ([], [])

    def test_message_dead_after_max_attempts(self, app, test_user):
        bus = EventBus()

        def broken(event):
            raise RuntimeError("still down")

        bus.subscribe("gamification.level.up", broken)
        enqueue("gamification.level.up", {"new_level": 3}, user_id=test_user.id)
        db.session.commit()

        for _ in range(2):
            dispatch_ready(
                bus_adapter=EventBusAdapter(bus),
                retry_in=timedelta(0),
                max_attempts=2,
            )

        message = OutboxMessage.query.one()
        assert message.attempts == 2
        assert message.status == "dead"

    def test_purge_sent_keeps_recent_and_unsent(self, app, test_user):
        old_sent = enqueue("habits.habit.completed", {}, user_id=test_user.id)
        old_pending = enqueue("habits.habit.completed", {}, user_id=test_user.id)
        recent_sent = enqueue("habits.habit.completed", {}, user_id=test_user.id)
        db.session.commit()
        long_ago = datetime.utcnow() - timedelta(days=30)
        old_sent.status = "sent"
        old_sent.created_at = long_ago
        old_pending.created_at = long_ago
        recent_sent.status = "sent"
        db.session.commit()

        assert purge_sent(timedelta(days=7)) == 1

        remaining = {m.id for m in OutboxMessage.query.all()}
        assert remaining == {old_pending.id, recent_sent.id}


class TestOutboxJob:
    def test_task_drains_everything(self, app, make_user):
        from habitloop.domains.gamification.services.badge_service import evaluate_badges

        user = make_user(total_points=1000)
        evaluate_badges(user.id)
        assert len(pending_messages()) == 1

        stats = run_outbox_dispatch(EventBusAdapter(EventBus()))

        assert stats == {"sent": 1, "failed": 0, "purged": 0}
        assert pending_messages() == []

    def test_dispatch_outbox_command(self, app, test_user):
        enqueue("gamification.level.up", {"new_level": 2}, user_id=test_user.id)
        db.session.commit()

        result = app.test_cli_runner().invoke(args=["dispatch-outbox"])

        assert result.exit_code == 0, result.output
        assert "1 sent, 0 failed, 0 purged" in result.output
        db.session.expire_all()
        assert OutboxMessage.query.one().status == "sent"
