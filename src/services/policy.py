"""
Role/permission policy.

Every mutating operation asks this module before touching the store. Roles map
to capability sets; ticket-scoped capabilities for USER are then narrowed to
tickets the actor created.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional

from models.ticket import Ticket, TicketStatus
from models.user import Role, User
from utils.error_handling import ForbiddenError


class Capability(str, Enum):
    """Actions the policy can grant."""

    VIEW = "view"
    EDIT = "edit"
    ASSIGN = "assign"
    DELETE = "delete"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.AGENT: frozenset({Capability.VIEW, Capability.EDIT, Capability.ASSIGN}),
    Role.USER: frozenset({Capability.VIEW, Capability.EDIT}),
}

# Roles whose VIEW/EDIT apply to every ticket rather than only their own.
GLOBAL_SCOPE_ROLES = frozenset({Role.ADMIN, Role.AGENT})


def capabilities_for(actor: Optional[User]) -> FrozenSet[Capability]:
    """Role-level grants. Inactive or unknown actors get nothing."""
    if actor is None or not actor.is_active:
        return frozenset()
    return ROLE_CAPABILITIES.get(actor.role, frozenset())


def allowed_actions(actor: Optional[User], ticket: Ticket) -> FrozenSet[Capability]:
    """Capabilities the actor holds on this particular ticket."""
    granted = capabilities_for(actor)
    if not granted or actor.role in GLOBAL_SCOPE_ROLES:
        return granted

    if ticket.created_by != actor.id:
        return frozenset(granted - {Capability.VIEW, Capability.EDIT})

    if ticket.status == TicketStatus.CLOSED:
        return frozenset(granted - {Capability.EDIT})
    return granted


def can_view(actor: Optional[User], ticket: Ticket) -> bool:
    return Capability.VIEW in allowed_actions(actor, ticket)


def can_edit(actor: Optional[User], ticket: Ticket) -> bool:
    return Capability.EDIT in allowed_actions(actor, ticket)


def can_assign(actor: Optional[User]) -> bool:
    return Capability.ASSIGN in capabilities_for(actor)


def can_delete(actor: Optional[User]) -> bool:
    return Capability.DELETE in capabilities_for(actor)


def require_assign(actor: Optional[User]) -> None:
    if not can_assign(actor):
        raise ForbiddenError("Only active agents and admins can assign tickets")


def require_delete(actor: Optional[User]) -> None:
    if not can_delete(actor):
        raise ForbiddenError("Only admins can delete tickets")


def require_edit(actor: Optional[User], ticket: Ticket) -> None:
    if not can_edit(actor, ticket):
        raise ForbiddenError("Insufficient permissions to update this ticket")
