"""Transactional outbox: domain events staged in the same commit as domain writes.

``dispatch_ready`` drains ready messages to the in-process event bus; sent
messages are purged once they are older than the retention window.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Set

from sqlalchemy import or_

from habitloop.core.events.event_bus import DomainEvent, EventBus, event_bus
from habitloop.extensions import db
from habitloop.habitloop_platform.outbox.models import OutboxMessage

STATUS_PENDING = "pending"
STATUS_SENDING = "sending"
STATUS_SENT = "sent"
STATUS_RETRY = "retry"
STATUS_DEAD = "dead"

MAX_DISPATCH_ATTEMPTS = 5
DEFAULT_RETRY_IN = timedelta(minutes=5)


class EventBusAdapter:
    """Publish outbox messages to the in-process bus, once per message id."""

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self.bus = bus or event_bus
        self._delivered: Set[int] = set()

    def dispatch(self, message: OutboxMessage) -> None:
        if message.id in self._delivered:
            return
        self.bus.publish(
            DomainEvent(
                event_type=message.event_type,
                payload=dict(message.payload or {}),
                user_id=message.user_id,
                event_id=message.id,
                created_at=message.created_at,
            )
        )
        self._delivered.add(message.id)


def enqueue(
    event_name: str,
    payload: dict,
    user_id: Optional[int],
    available_at: Optional[datetime] = None,
) -> OutboxMessage:
    """
    Stage an event in the outbox. Caller should commit alongside domain changes.
    """
    message = OutboxMessage(
        event_type=event_name,
        payload=payload or {},
        user_id=user_id,
        available_at=available_at or datetime.utcnow(),
        status=STATUS_PENDING,
        attempts=0,
    )
    db.session.add(message)
    return message


def pending_messages(event_type: Optional[str] = None, limit: int = 50) -> List[OutboxMessage]:
    query = OutboxMessage.query.filter_by(status=STATUS_PENDING)
    if event_type:
        query = query.filter_by(event_type=event_type)
    return query.order_by(OutboxMessage.available_at, OutboxMessage.id).limit(limit).all()


def dequeue_batch(limit: int = 50) -> List[OutboxMessage]:
    """
    Lock and return ready messages (pending or retryable). Marks them as sending.
    """
    ready = (
        OutboxMessage.query.filter(
            OutboxMessage.available_at <= datetime.utcnow(),
            or_(
                OutboxMessage.status == STATUS_PENDING,
                OutboxMessage.status == STATUS_RETRY,
            ),
        )
        .order_by(OutboxMessage.available_at, OutboxMessage.id)
        .with_for_update(skip_locked=True)
        .limit(limit)
        .all()
    )
    for message in ready:
        message.status = STATUS_SENDING
        message.attempts += 1
    db.session.commit()
    return ready


def mark_sent(ids: Sequence[int]) -> int:
    if not ids:
        return 0
    updated = OutboxMessage.query.filter(
        OutboxMessage.id.in_(list(ids)),
        OutboxMessage.status == STATUS_SENDING,
    ).update({"status": STATUS_SENT, "last_error": None})
    db.session.commit()
    return updated


def mark_failed(
    message_id: int,
    err: Exception | str,
    retry_in: timedelta = DEFAULT_RETRY_IN,
    max_attempts: int = MAX_DISPATCH_ATTEMPTS,
) -> Optional[OutboxMessage]:
    message = (
        OutboxMessage.query.filter(
            OutboxMessage.id == message_id,
            OutboxMessage.status == STATUS_SENDING,
        )
        .with_for_update()
        .one_or_none()
    )
    if not message:
        return None

    message.last_error = str(err)
    next_available = datetime.utcnow() + retry_in
    message.available_at = max(message.available_at or next_available, next_available)
    message.status = STATUS_DEAD if message.attempts >= max_attempts else STATUS_RETRY
    db.session.commit()
    return message


def dispatch_ready(
    limit: int = 50,
    retry_in: timedelta = DEFAULT_RETRY_IN,
    max_attempts: int = MAX_DISPATCH_ATTEMPTS,
    bus_adapter: Optional[EventBusAdapter] = None,
) -> tuple[List[int], List[int]]:
    """Publish one batch. Returns ``(sent_ids, failed_ids)``."""
    adapter = bus_adapter or EventBusAdapter()
    sent_ids: List[int] = []
    failed_ids: List[int] = []

    for message in dequeue_batch(limit=limit):
        try:
            adapter.dispatch(message)
            sent_ids.append(message.id)
        except Exception as err:
            mark_failed(message.id, err, retry_in=retry_in, max_attempts=max_attempts)
            failed_ids.append(message.id)

    mark_sent(sent_ids)
    return sent_ids, failed_ids


def purge_sent(older_than: timedelta) -> int:
    """Delete sent messages created before ``now - older_than``."""
    cutoff = datetime.utcnow() - older_than
    deleted = OutboxMessage.query.filter(
        OutboxMessage.status == STATUS_SENT,
        OutboxMessage.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


__all__ = [
    "EventBusAdapter",
    "OutboxMessage",
    "dequeue_batch",
    "dispatch_ready",
    "enqueue",
    "mark_failed",
    "mark_sent",
    "pending_messages",
    "purge_sent",
]
