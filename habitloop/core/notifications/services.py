"""Notification services: creation by domain services, read-state helpers."""

from __future__ import annotations

from typing import List, Optional

from habitloop.core.notifications.models import NOTIFICATION_TYPES, Notification
from habitloop.extensions import db


def create_notification(
    user_id: int,
    type: str,
    *,
    title: str,
    message: str,
    data: Optional[dict] = None,
) -> Notification:
    """Stage a notification row. Caller commits alongside the triggering change."""
    if type not in NOTIFICATION_TYPES:
        raise ValueError("validation_error")
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        data=data or {},
        is_read=False,
    )
    db.session.add(notification)
    return notification


def list_notifications(user_id: int, *, limit: int = 20, unread_only: bool = False) -> List[Notification]:
    query = Notification.query.filter_by(user_id=user_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    limit = min(max(limit, 1), 100)
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_as_read(user_id: int, notification_id: int) -> bool:
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        return False
    notification.is_read = True
    db.session.commit()
    return True


def mark_all_as_read(user_id: int) -> int:
    updated = (
        db.session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True})
    )
    db.session.commit()
    return int(updated or 0)


def delete_notification(user_id: int, notification_id: int) -> bool:
    notification = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        return False
    db.session.delete(notification)
    db.session.commit()
    return True


def unread_count(user_id: int) -> int:
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()
