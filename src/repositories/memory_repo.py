"""In-memory repository used for local runs and tests."""

from collections import Counter
from threading import Lock
from typing import Dict, List, Optional, Tuple

from models.ticket import Ticket, TicketStatus
from models.user import User


class InMemoryRepository:
    """Dict-backed ticket/user store. Returns copies so callers cannot mutate state."""

    def __init__(self) -> None:
        self._tickets: Dict[str, Ticket] = {}
        self._users: Dict[str, User] = {}
        self._lock = Lock()

    # Users

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy()
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def list_active_assignees(self) -> List[User]:
        """Active agents/admins, most senior first."""
        users = [u for u in self._users.values() if u.is_eligible_assignee]
        return [u.model_copy() for u in sorted(users, key=lambda u: (u.created_at, u.id))]

    # Tickets

    def create_ticket(self, ticket: Ticket) -> Ticket:
        with self._lock:
            self._tickets[ticket.id] = ticket.model_copy()
        return ticket.model_copy()

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ticket = self._tickets.get(ticket_id)
        return ticket.model_copy() if ticket else None

    def update_ticket(self, ticket_id: str, fields: dict) -> Optional[Ticket]:
        """Apply a partial update in one step. Returns None if the ticket is gone."""
        with self._lock:
            ticket = self._tickets.get(ticket_id)
            if ticket is None:
                return None
            updated = ticket.model_copy(update=fields)
            self._tickets[ticket_id] = updated
            return updated.model_copy()

    def delete_ticket(self, ticket_id: str) -> bool:
        with self._lock:
            return self._tickets.pop(ticket_id, None) is not None

    def list_tickets(
        self,
        created_by: Optional[str] = None,
        assigned_to: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        """Filter tickets; newest update first."""
        results = [
            t
            for t in self._tickets.values()
            if (created_by is None or t.created_by == created_by)
            and (assigned_to is None or t.assigned_to == assigned_to)
            and (status is None or t.status == status)
        ]
        results.sort(key=lambda t: t.updated_at, reverse=True)
        return [t.model_copy() for t in results]

    def count_tickets(
        self, status: Optional[TicketStatus] = None, assigned: Optional[bool] = None
    ) -> int:
        return sum(
            1
            for t in self._tickets.values()
            if (status is None or t.status == status)
            and (assigned is None or (t.assigned_to is not None) == assigned)
        )

    def count_tickets_by_assignee_and_status(self) -> Dict[Tuple[str, TicketStatus], int]:
        return dict(
            Counter(
                (t.assigned_to, t.status)
                for t in self._tickets.values()
                if t.assigned_to is not None
            )
        )
