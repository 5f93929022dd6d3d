"""Simple in-process event bus fed by the outbox dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional


@dataclass(frozen=True)
class DomainEvent:
    event_type: str
    payload: dict = field(default_factory=dict)
    user_id: Optional[int] = None
    event_id: Optional[int] = None
    created_at: Optional[datetime] = None


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = {}

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._subscribers.setdefault(event_type, [])
        handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._subscribers.get(event.event_type, []):
            handler(event)


# Global singleton
event_bus = EventBus()
