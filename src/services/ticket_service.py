"""Ticket create/read/update/delete with role-scoped access."""

from __future__ import annotations

import uuid
from typing import List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from models.ticket import Ticket, TicketCreate, TicketUpdate, utc_now
from models.user import Role, User
from services.lifecycle_service import INITIAL_STATUS
from services.policy import capabilities_for, can_view, require_delete, require_edit
from utils.error_handling import ForbiddenError, ValidationError, ticket_not_found
from utils.logging_config import get_logger, log_business_event
from utils.validators import ensure_present, parse_status

logger = get_logger(__name__)


def _parse(model, payload):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload or {})
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"{field}: {first.get('msg')}" if field else first.get("msg")) from exc


class TicketService:
    """Encapsulates ticket CRUD; status and assignee changes live elsewhere."""

    def __init__(self, repository):
        self.repository = repository

    def create_ticket(self, payload: Union[TicketCreate, dict], actor_id: str) -> Ticket:
        """Any active user may open a ticket. New tickets start OPEN and unassigned."""
        actor = self._actor(actor_id)
        if not capabilities_for(actor):
            raise ForbiddenError("Only active users can create tickets")
        data = _parse(TicketCreate, payload)

        now = utc_now()
        ticket = Ticket(
            id=str(uuid.uuid4()),
            title=data.title,
            description=data.description,
            priority=data.priority,
            status=INITIAL_STATUS,
            created_by=actor.id,
            created_at=now,
            updated_at=now,
        )
        created = self.repository.create_ticket(ticket)
        log_business_event(
            logger,
            "ticket_created",
            ticket_id=created.id,
            priority=created.priority.value,
            actor_id=actor.id,
        )
        return created

    def get_ticket(self, ticket_id: str, actor_id: str) -> Ticket:
        """Tickets the actor may not see are reported as missing."""
        actor = self._actor(actor_id)
        if not capabilities_for(actor):
            raise ForbiddenError("Access denied")
        ticket = self._load(ticket_id)
        if not can_view(actor, ticket):
            raise ticket_not_found(ticket_id)
        return ticket

    def update_ticket(
        self, ticket_id: str, changes: Union[TicketUpdate, dict], actor_id: str
    ) -> Ticket:
        """Edit title, description or priority."""
        update = _parse(TicketUpdate, changes)
        ticket = self._load(ticket_id)
        require_edit(self._actor(actor_id), ticket)

        fields = update.changes()
        if not fields:
            return ticket
        fields["updated_at"] = utc_now()
        updated = self.repository.update_ticket(ticket.id, fields)
        if updated is None:
            raise ticket_not_found(ticket_id)
        logger.info(
            "Ticket updated",
            extra={"ticket_id": ticket.id, "fields": sorted(update.changes())},
        )
        return updated

    def delete_ticket(self, ticket_id: str, actor_id: str) -> None:
        """Hard delete. Terminal; admins only."""
        actor = self._actor(actor_id)
        require_delete(actor)
        ticket = self._load(ticket_id)
        if not self.repository.delete_ticket(ticket.id):
            raise ticket_not_found(ticket_id)
        log_business_event(logger, "ticket_deleted", ticket_id=ticket.id, actor_id=actor.id)

    def list_tickets(self, actor_id: str, status=None) -> List[Ticket]:
        """USER sees only tickets they created; AGENT and ADMIN see everything."""
        actor = self._actor(actor_id)
        if not capabilities_for(actor):
            raise ForbiddenError("Access denied")
        status_filter = parse_status(status) if status else None
        created_by = actor.id if actor.role == Role.USER else None
        return self.repository.list_tickets(created_by=created_by, status=status_filter)

    def _actor(self, actor_id: str) -> Optional[User]:
        return self.repository.get_user(actor_id) if actor_id else None

    def _load(self, ticket_id: str) -> Ticket:
        ensure_present(ticket_id, "ticket_id")
        ticket = self.repository.get_ticket(ticket_id)
        if ticket is None:
            raise ticket_not_found(ticket_id)
        return ticket
