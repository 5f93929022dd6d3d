"""CLI commands for scheduled gamification and outbox jobs.

Usage:
    flask --app habitloop seed-daily-challenges
    flask --app habitloop send-streak-reminders
    flask --app habitloop recalculate-streaks --user 1
    flask --app habitloop dispatch-outbox
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("seed-daily-challenges")
@with_appcontext
def seed_daily_challenges_command():
    """Create today's daily challenges if they do not exist yet."""
    from habitloop.domains.gamification.tasks import run_daily_challenge_seed

    stats = run_daily_challenge_seed()
    click.echo(f"✓ Daily challenges for {stats['date']}: {len(stats['challenge_ids'])}")


@click.command("send-streak-reminders")
@with_appcontext
def send_streak_reminders_command():
    """Notify users whose streaks are at risk tonight."""
    from habitloop.domains.gamification.tasks import run_streak_reminders

    stats = run_streak_reminders()
    click.echo(f"✓ Sent {stats['reminders']} reminders to {stats['users']} users")


@click.command("recalculate-streaks")
@click.option("--user", "-u", type=int, required=True, help="User ID whose habits to refresh")
@with_appcontext
def recalculate_streaks_command(user: int):
    """Recompute cached streaks, badges and level for one user."""
    from habitloop.domains.gamification.services.badge_service import evaluate_badges
    from habitloop.domains.gamification.services.level_service import recalculate_level
    from habitloop.domains.habits.models.habit_models import Habit
    from habitloop.domains.habits.services.streak_service import recalculate_streak

    habits = Habit.query.filter_by(user_id=user).all()
    for habit in habits:
        recalculate_streak(habit.id, user)
        click.echo(f"  {habit.title}: current={habit.current_streak} longest={habit.longest_streak}")
    badges = evaluate_badges(user)
    leveled = recalculate_level(user)
    click.echo(f"✓ {len(habits)} habits refreshed, {len(badges)} new badges, level up: {'yes' if leveled else 'no'}")


@click.command("dispatch-outbox")
@with_appcontext
def dispatch_outbox_command():
    """Publish ready outbox messages and purge old sent ones."""
    from habitloop.habitloop_platform.outbox.tasks import run_outbox_dispatch

    stats = run_outbox_dispatch()
    click.echo(f"✓ Outbox: {stats['sent']} sent, {stats['failed']} failed, {stats['purged']} purged")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(seed_daily_challenges_command)
    app.cli.add_command(send_streak_reminders_command)
    app.cli.add_command(recalculate_streaks_command)
    app.cli.add_command(dispatch_outbox_command)
