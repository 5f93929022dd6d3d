import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from habitloop import create_app
from habitloop.core.clock import FixedClock
from habitloop.core.users.models import User
from habitloop.domains.habits.models.habit_models import Habit, HabitCompletion
from habitloop.extensions import db
from habitloop.tests.helpers import NOW


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database)")
    config.addinivalue_line("markers", "slow: Slow running tests")


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def app(clock):
    """
    Create a per-test app backed by a fresh in-memory database.

    The fixed clock is installed on the app so services that are not handed a
    clock explicitly still see the test's "now".
    """
    app = create_app("testing", clock=clock)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def make_user(app):
    counter = {"n": 0}

    def _make(**fields) -> User:
        counter["n"] += 1
        fields.setdefault("email", f"user{counter['n']}@example.com")
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def test_user(make_user):
    return make_user(email="habits-tester@example.com")


@pytest.fixture()
def make_habit(app):
    def _make(user: User, **fields) -> Habit:
        fields.setdefault("title", "Read")
        fields.setdefault("points", 10)
        habit = Habit(user_id=user.id, **fields)
        db.session.add(habit)
        db.session.commit()
        return habit

    return _make


@pytest.fixture()
def add_completion(app):
    """Insert a completion row directly, bypassing the one-per-day guard."""

    def _add(habit: Habit, when: datetime, **fields) -> HabitCompletion:
        completion = HabitCompletion(
            habit_id=habit.id, user_id=habit.user_id, completed_at=when, **fields
        )
        db.session.add(completion)
        db.session.commit()
        return completion

    return _add
