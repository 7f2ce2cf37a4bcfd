"""
Assignment Engine.

Assign, unassign, reassign and auto-assign single tickets. Every operation
asks the policy first, before any input is looked at, so an actor without the
assign capability always gets FORBIDDEN. Only ``assigned_to`` and
``updated_at`` are ever written here.

Notifications and event publishing are side channels: their failures are
logged and the assignment stands. Repository errors propagate unchanged.
"""

from __future__ import annotations

from typing import List, Optional

from config.settings import Settings
from models.assignment import (
    AssigneeWorkload,
    AssignmentEvent,
    AssignmentKind,
    AssignmentRecommendation,
    AssignmentStatistics,
)
from models.ticket import Ticket, TicketStatus, utc_now
from models.user import User, UserSummary
from services.auto_assignment import pick_assignee, rank_assignees
from services.policy import require_assign
from services.workload_service import WorkloadService, without_ticket
from utils.error_handling import ConflictError, ticket_not_found, user_not_found
from utils.logging_config import get_logger, log_business_event
from utils.validators import ensure_present, parse_status

logger = get_logger(__name__)

AUTO_ASSIGN_REASON = "Auto-assigned by workload balancing"


class AssignmentService:
    """Single-ticket assignment operations and assignment reporting."""

    def __init__(
        self,
        repository,
        notifier=None,
        publisher=None,
        settings: Settings = None,
        workload_service: WorkloadService = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.publisher = publisher
        self.settings = settings or Settings()
        self.workloads = workload_service or WorkloadService(repository, self.settings)

    # Mutations

    def assign_ticket(
        self, ticket_id: str, assignee_id: str, actor_id: str, reason: str = None
    ) -> Ticket:
        """Point the ticket at an eligible assignee. Same assignee is a no-op."""
        actor = self._authorize(actor_id)
        ticket = self._load_ticket(ticket_id)
        assignee = self._load_assignee(assignee_id)
        return self._assign(actor, ticket, assignee, reason, AssignmentKind.ASSIGN)

    def unassign_ticket(self, ticket_id: str, actor_id: str, reason: str = None) -> Ticket:
        """Clear the assignee. Already unassigned tickets come back unchanged."""
        actor = self._authorize(actor_id)
        ticket = self._load_ticket(ticket_id)
        if ticket.assigned_to is None:
            logger.debug("Ticket already unassigned", extra={"ticket_id": ticket.id})
            return ticket

        updated = self._apply(ticket.id, None)
        self._publish(
            AssignmentEvent(
                ticket_id=ticket.id,
                from_assignee=ticket.assigned_to,
                to_assignee=None,
                actor_id=actor.id,
                reason=reason,
                kind=AssignmentKind.UNASSIGN,
            )
        )
        log_business_event(
            logger,
            "ticket_unassigned",
            ticket_id=ticket.id,
            from_assignee=ticket.assigned_to,
            actor_id=actor.id,
        )
        return updated

    def reassign_ticket(
        self, ticket_id: str, new_assignee_id: str, actor_id: str, reason: str = None
    ) -> Ticket:
        """Move the ticket to another assignee in one update."""
        actor = self._authorize(actor_id)
        ticket = self._load_ticket(ticket_id)
        assignee = self._load_assignee(new_assignee_id)
        return self._assign(actor, ticket, assignee, reason, AssignmentKind.REASSIGN)

    def auto_assign_ticket(self, ticket_id: str, actor_id: str, reason: str = None) -> Ticket:
        """Assign to the least loaded eligible agent or admin."""
        actor = self._authorize(actor_id)
        ticket = self._load_ticket(ticket_id)
        assignees, workloads = self._snapshot_for(ticket)
        choice = pick_assignee(assignees, workloads)
        assignee = next(user for user in assignees if user.id == choice.user_id)
        return self._assign(
            actor, ticket, assignee, reason or AUTO_ASSIGN_REASON, AssignmentKind.AUTO_ASSIGN
        )

    # Queries

    def get_assignment_recommendations(self, ticket_id: str) -> List[AssignmentRecommendation]:
        """Full ranked candidate list for a ticket. Nothing is written."""
        ticket = self._load_ticket(ticket_id)
        assignees, workloads = self._snapshot_for(ticket)
        return rank_assignees(assignees, workloads)

    def get_available_assignees(self) -> List[UserSummary]:
        return [UserSummary.from_user(u) for u in self.repository.list_active_assignees()]

    def get_assignee_workloads(self) -> List[AssigneeWorkload]:
        return self.workloads.get_assignee_workloads()

    def get_assignment_statistics(self) -> AssignmentStatistics:
        return AssignmentStatistics(
            total_assigned=self.repository.count_tickets(assigned=True),
            unassigned=self.repository.count_tickets(assigned=False),
        )

    def get_user_assigned_tickets(self, user_id: str, status=None) -> List[Ticket]:
        """Tickets currently held by a user, most recently updated first."""
        ensure_present(user_id, "user_id")
        status_filter: Optional[TicketStatus] = parse_status(status) if status else None
        return self.repository.list_tickets(assigned_to=user_id, status=status_filter)

    # Internals

    def _authorize(self, actor_id: str) -> User:
        actor = self.repository.get_user(actor_id) if actor_id else None
        require_assign(actor)
        return actor

    def _load_ticket(self, ticket_id: str) -> Ticket:
        ensure_present(ticket_id, "ticket_id")
        ticket = self.repository.get_ticket(ticket_id)
        if ticket is None:
            raise ticket_not_found(ticket_id)
        return ticket

    def _load_assignee(self, assignee_id: str) -> User:
        ensure_present(assignee_id, "assignee_id", code="MISSING_ASSIGNEE")
        assignee = self.repository.get_user(assignee_id)
        if assignee is None:
            raise user_not_found(assignee_id)
        if not assignee.is_eligible_assignee:
            raise ConflictError(
                f"User {assignee_id} cannot be assigned tickets; "
                "only active agents and admins are eligible",
                code="INELIGIBLE_ASSIGNEE",
            )
        return assignee

    def _assign(
        self,
        actor: User,
        ticket: Ticket,
        assignee: User,
        reason: Optional[str],
        kind: AssignmentKind,
    ) -> Ticket:
        if ticket.assigned_to == assignee.id:
            logger.debug(
                "Ticket already assigned to requested user",
                extra={"ticket_id": ticket.id, "assignee_id": assignee.id},
            )
            return ticket

        updated = self._apply(ticket.id, assignee.id)
        self._publish(
            AssignmentEvent(
                ticket_id=ticket.id,
                from_assignee=ticket.assigned_to,
                to_assignee=assignee.id,
                actor_id=actor.id,
                reason=reason,
                kind=kind,
            )
        )
        self._notify(updated, assignee, actor.id, ticket.assigned_to)
        log_business_event(
            logger,
            f"ticket_{kind.value.lower()}",
            ticket_id=ticket.id,
            from_assignee=ticket.assigned_to,
            to_assignee=assignee.id,
            actor_id=actor.id,
        )
        return updated

    def _snapshot_for(self, ticket: Ticket):
        assignees, workloads = self.workloads.snapshot()
        return assignees, without_ticket(workloads, ticket, self.settings.max_active_tickets)

    def _apply(self, ticket_id: str, assigned_to: Optional[str]) -> Ticket:
        updated = self.repository.update_ticket(
            ticket_id, {"assigned_to": assigned_to, "updated_at": utc_now()}
        )
        if updated is None:
            # deleted between read and write
            raise ticket_not_found(ticket_id)
        return updated

    def _publish(self, event: AssignmentEvent) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish(event)
        except Exception as exc:
            logger.warning(
                "Failed to publish assignment event",
                extra={"ticket_id": event.ticket_id, "kind": event.kind.value, "error": str(exc)},
            )

    def _notify(
        self, ticket: Ticket, assignee: User, actor_id: str, previous_assignee_id: Optional[str]
    ) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify_assignment(
                ticket.id,
                assignee.id,
                actor_id,
                ticket_title=ticket.title,
                creator_id=ticket.created_by,
                previous_assignee_id=previous_assignee_id,
                assignee_name=assignee.full_name,
            )
        except Exception as exc:
            logger.warning(
                "Assignment notification failed",
                extra={
                    "event": "notification_failed",
                    "ticket_id": ticket.id,
                    "assignee_id": assignee.id,
                    "error": str(exc),
                },
            )
