"""Shared test constants."""

from datetime import datetime

# A Wednesday afternoon: no weekend day and no early-morning hour by default.
NOW = datetime(2026, 10, 14, 14, 0)
