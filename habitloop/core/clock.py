"""Injectable wall-clock source for time-dependent services.

Streaks, badge windows, daily challenges and evening reminders all depend on
"now". Services never call ``datetime.now()`` directly; they take an optional
``clock`` argument and otherwise use the clock installed on the app by
``create_app`` (``app.extensions["clock"]``). All timestamps are naive local
wall-clock datetimes, which is what "calendar day" and "8 PM" mean here.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol, Tuple

from flask import current_app, has_app_context


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local wall clock."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, **delta) -> datetime:
        self._instant = self._instant + timedelta(**delta)
        return self._instant


def get_clock(clock: Clock | None = None) -> Clock:
    if clock is not None:
        return clock
    if has_app_context():
        installed = current_app.extensions.get("clock")
        if installed is not None:
            return installed
    return SystemClock()


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def day_window(moment: datetime) -> Tuple[datetime, datetime]:
    """Return ``[midnight, next midnight)`` around ``moment``."""
    start = start_of_day(moment)
    return start, start + timedelta(days=1)
