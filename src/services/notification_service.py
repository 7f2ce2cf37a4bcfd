"""
In-app notifications.

Each user has an inbox kept in process memory, newest first, capped at
``notification_history_limit``. Delivery to a browser is somebody else's job;
this service only records what should be shown.
"""

from __future__ import annotations

import uuid
from threading import Lock
from typing import Dict, Iterable, List, Optional

from config.settings import Settings
from models.notification import Notification, NotificationType
from models.ticket import TicketStatus
from utils.error_handling import NotFoundError
from utils.logging_config import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Per-user notification inbox."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        self._inboxes: Dict[str, List[Notification]] = {}
        self._lock = Lock()

    def create_notification(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        ticket_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            type=type,
            title=title,
            message=message,
            user_id=user_id,
            ticket_id=ticket_id,
            actor_id=actor_id,
        )
        with self._lock:
            inbox = self._inboxes.setdefault(user_id, [])
            inbox.insert(0, notification)
            del inbox[self.settings.notification_history_limit:]

        logger.info(
            "Notification created",
            extra={"user_id": user_id, "type": type.value, "ticket_id": ticket_id},
        )
        return notification

    def notify_assignment(
        self,
        ticket_id: str,
        assignee_id: str,
        actor_id: str,
        ticket_title: Optional[str] = None,
        creator_id: Optional[str] = None,
        previous_assignee_id: Optional[str] = None,
        assignee_name: Optional[str] = None,
    ) -> List[Notification]:
        """
        Announce an assignment.

        The new assignee is always told, self-assignment included. The ticket
        creator and the previous assignee are told too unless they made the
        change themselves.
        """
        subject = ticket_title or ticket_id
        if assignee_id == actor_id:
            title, message = "Ticket Assigned to You", f"You assigned yourself to ticket: {subject}"
        else:
            title, message = "New Ticket Assigned", f"You have been assigned to ticket: {subject}"

        sent = [
            self.create_notification(
                user_id=assignee_id,
                type=NotificationType.TICKET_ASSIGNED,
                title=title,
                message=message,
                ticket_id=ticket_id,
                actor_id=actor_id,
            )
        ]
        if creator_id and creator_id not in (actor_id, assignee_id):
            sent.append(
                self.create_notification(
                    user_id=creator_id,
                    type=NotificationType.TICKET_ASSIGNED,
                    title="Your Ticket Was Assigned",
                    message=f"Your ticket '{subject}' was assigned to {assignee_name or assignee_id}",
                    ticket_id=ticket_id,
                    actor_id=actor_id,
                )
            )
        if previous_assignee_id and previous_assignee_id not in (actor_id, assignee_id):
            sent.append(
                self.create_notification(
                    user_id=previous_assignee_id,
                    type=NotificationType.TICKET_UNASSIGNED,
                    title="Ticket Reassigned",
                    message=f"Ticket '{subject}' was assigned to someone else",
                    ticket_id=ticket_id,
                    actor_id=actor_id,
                )
            )
        return sent

    def notify_status_change(
        self,
        ticket_id: str,
        recipient_ids: Iterable[str],
        actor_id: str,
        new_status: TicketStatus,
        ticket_title: Optional[str] = None,
    ) -> List[Notification]:
        subject = ticket_title or ticket_id
        label = new_status.value.replace("_", " ").lower()
        return [
            self.create_notification(
                user_id=recipient,
                type=NotificationType.TICKET_STATUS_CHANGED,
                title="Ticket Status Updated",
                message=f"Ticket '{subject}' is now {label}",
                ticket_id=ticket_id,
                actor_id=actor_id,
            )
            for recipient in dict.fromkeys(recipient_ids)
            if recipient and recipient != actor_id
        ]

    def get_user_notifications(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> List[Notification]:
        inbox = self._inboxes.get(user_id, [])
        return [n.model_copy() for n in inbox[offset:offset + limit]]

    def get_unread_count(self, user_id: str) -> int:
        return sum(1 for n in self._inboxes.get(user_id, []) if not n.read)

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        with self._lock:
            for notification in self._inboxes.get(user_id, []):
                if notification.id == notification_id:
                    notification.read = True
                    return notification.model_copy()
        raise NotFoundError(
            f"Notification with ID {notification_id} not found",
            code="NOTIFICATION_NOT_FOUND",
        )

    def mark_all_as_read(self, user_id: str) -> int:
        """Returns how many notifications changed."""
        changed = 0
        with self._lock:
            for notification in self._inboxes.get(user_id, []):
                if not notification.read:
                    notification.read = True
                    changed += 1
        return changed
