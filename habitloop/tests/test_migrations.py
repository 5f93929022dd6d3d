"""Alembic migrations produce the schema the models expect."""

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config as AlembicConfig

pytestmark = [pytest.mark.integration, pytest.mark.slow]

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def _alembic_config(db_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("habitloop_env", "testing")
    cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


def test_upgrade_and_downgrade(tmp_path):
    db_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    cfg = _alembic_config(db_url)

    command.upgrade(cfg, "head")

    engine = sa.create_engine(db_url)
    try:
        inspector = sa.inspect(engine)
        tables = set(inspector.get_table_names())
        assert {
            "user",
            "habits_habit",
            "habits_habit_completion",
            "gamification_badge",
            "gamification_user_badge",
            "gamification_daily_challenge",
            "gamification_daily_challenge_completion",
            "notifications_notification",
            "platform_outbox",
        } <= tables
        user_badge_uniques = {
            uc["name"] for uc in inspector.get_unique_constraints("gamification_user_badge")
        }
        assert "uq_gamification_user_badge_user_badge" in user_badge_uniques
        outbox_columns = {c["name"] for c in inspector.get_columns("platform_outbox")}
        assert {"status", "attempts", "available_at", "last_error"} <= outbox_columns

        command.downgrade(cfg, "base")
        assert "habits_habit" not in set(sa.inspect(engine).get_table_names())
    finally:
        engine.dispose()
