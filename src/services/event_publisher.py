"""
Domain event publishers.

Services hand every AssignmentEvent and StatusChangeEvent to a publisher.
``InMemoryEventPublisher`` keeps the events and fans them out to subscribers
(a WebSocket gateway, the history sink). ``DynamoDbEventPublisher`` writes them
to the assignment history table.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, List, Union

from models.assignment import AssignmentEvent, StatusChangeEvent
from repositories.dynamodb_repo import AssignmentHistoryRepository
from utils.logging_config import get_logger

logger = get_logger(__name__)

DomainEvent = Union[AssignmentEvent, StatusChangeEvent]


def event_type(event: DomainEvent) -> str:
    if isinstance(event, AssignmentEvent):
        return f"assignment.{event.kind.value.lower()}"
    return "ticket.status_changed"


class InMemoryEventPublisher:
    """Keeps the most recent events and broadcasts each one to subscribers."""

    def __init__(self, max_events: int = 100) -> None:
        self._events: Deque[DomainEvent] = deque(maxlen=max_events)
        self._subscribers: List[Callable[[DomainEvent], None]] = []

    @property
    def events(self) -> List[DomainEvent]:
        """Retained events, oldest first."""
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def subscribe(self, callback: Callable[[DomainEvent], None]) -> None:
        self._subscribers.append(callback)

    def publish(self, event: DomainEvent) -> None:
        self._events.append(event)
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception as exc:
                logger.warning(
                    "Event subscriber failed",
                    extra={
                        "event_type": event_type(event),
                        "ticket_id": event.ticket_id,
                        "error": str(exc),
                    },
                )


class DynamoDbEventPublisher:
    """Persists events as assignment history items."""

    def __init__(self, repository: AssignmentHistoryRepository):
        self.repository = repository

    def publish(self, event: DomainEvent) -> None:
        item = self.repository.record(event, event_type(event))
        logger.debug(
            "Event written to history",
            extra={"ticket_id": event.ticket_id, "event_type": item["event_type"]},
        )
