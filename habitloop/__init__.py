"""HabitLoop application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from habitloop.config import config_by_name
from habitloop.core.clock import SystemClock
from habitloop.extensions import init_extensions


def create_app(config_name: Optional[str] = None, clock=None) -> Flask:
    """Create and configure the HabitLoop Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = db_uri.replace("sqlite:///", "", 1)
        abs_path = Path(db_path)
        if not abs_path.is_absolute():
            abs_path = project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    init_extensions(app)
    _register_models()

    # Every time-dependent service reads "now" from here.
    app.extensions["clock"] = clock or SystemClock()

    from habitloop.scripts.gamification_jobs import register_commands

    register_commands(app)

    return app


def _register_models() -> None:
    """Import model modules so metadata is complete for create_all/migrations."""
    from habitloop.core.notifications import models as notification_models  # noqa: F401
    from habitloop.core.users import models as user_models  # noqa: F401
    from habitloop.domains.gamification.models import gamification_models  # noqa: F401
    from habitloop.domains.habits.models import habit_models  # noqa: F401
    from habitloop.habitloop_platform.outbox import models as outbox_models  # noqa: F401
