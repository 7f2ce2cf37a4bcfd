"""
Ticket lifecycle.

OPEN, IN_PROGRESS and CLOSED form a complete graph: any state can move to any
other, including reopening a CLOSED ticket. The policy decides who may move a
ticket, never which moves exist. A status change is an edit and never touches
the assignee.
"""

from __future__ import annotations

from typing import List

from models.assignment import StatusChangeEvent, StatusStatistics
from models.ticket import Ticket, TicketStatus, utc_now
from services.policy import require_edit
from utils.error_handling import ticket_not_found
from utils.logging_config import get_logger, log_business_event
from utils.validators import ensure_present, parse_status

logger = get_logger(__name__)

INITIAL_STATUS = TicketStatus.OPEN


def valid_transitions(status) -> List[TicketStatus]:
    """States reachable from ``status`` in one step."""
    current = parse_status(status)
    return [candidate for candidate in TicketStatus if candidate != current]


class TicketLifecycleService:
    """Status changes and status reporting."""

    def __init__(self, repository, publisher=None, notifier=None):
        self.repository = repository
        self.publisher = publisher
        self.notifier = notifier

    def change_status(
        self, ticket_id: str, new_status, actor_id: str, reason: str = None
    ) -> Ticket:
        """Move a ticket to ``new_status``. Moving to the current status is a no-op."""
        status = parse_status(new_status)
        ensure_present(ticket_id, "ticket_id")
        ticket = self.repository.get_ticket(ticket_id)
        if ticket is None:
            raise ticket_not_found(ticket_id)

        actor = self.repository.get_user(actor_id) if actor_id else None
        require_edit(actor, ticket)

        if ticket.status == status:
            return ticket

        updated = self.repository.update_ticket(
            ticket.id, {"status": status, "updated_at": utc_now()}
        )
        if updated is None:
            raise ticket_not_found(ticket_id)

        event = StatusChangeEvent(
            ticket_id=ticket.id,
            from_status=ticket.status,
            to_status=status,
            actor_id=actor.id,
            reason=reason,
        )
        self._publish(event)
        self._notify(updated, actor.id)
        log_business_event(
            logger,
            "ticket_status_changed",
            ticket_id=ticket.id,
            from_status=ticket.status.value,
            to_status=status.value,
            actor_id=actor.id,
        )
        return updated

    def get_status_statistics(self) -> StatusStatistics:
        counts = {status: self.repository.count_tickets(status=status) for status in TicketStatus}
        total = sum(counts.values())
        percentages = {
            status: round(count * 100 / total) if total else 0
            for status, count in counts.items()
        }
        return StatusStatistics(total=total, counts=counts, percentages=percentages)

    def _publish(self, event: StatusChangeEvent) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish(event)
        except Exception as exc:
            logger.warning(
                "Failed to publish status event",
                extra={"ticket_id": event.ticket_id, "error": str(exc)},
            )

    def _notify(self, ticket: Ticket, actor_id: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify_status_change(
                ticket.id,
                [ticket.created_by, ticket.assigned_to],
                actor_id,
                ticket.status,
                ticket_title=ticket.title,
            )
        except Exception as exc:
            logger.warning(
                "Status notification failed",
                extra={"event": "notification_failed", "ticket_id": ticket.id, "error": str(exc)},
            )
