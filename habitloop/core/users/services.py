"""User service layer."""

from __future__ import annotations

from typing import Optional

from habitloop.core.users.models import User
from habitloop.extensions import db


def get_user(user_id: int) -> Optional[User]:
    return db.session.get(User, user_id)


def create_user(email: str, *, full_name: str | None = None, username: str | None = None) -> User:
    email_norm = (email or "").strip().lower()
    if not email_norm:
        raise ValueError("validation_error")
    if User.query.filter_by(email=email_norm).first():
        raise ValueError("duplicate")
    user = User(
        email=email_norm,
        full_name=(full_name or "").strip() or None,
        username=(username or "").strip() or None,
    )
    db.session.add(user)
    db.session.commit()
    return user


def credit_points(user_id: int, amount: int) -> None:
    """Atomically add ``amount`` to the user's total; caller commits."""
    db.session.query(User).filter(User.id == user_id).update(
        {User.total_points: User.total_points + amount}
    )
