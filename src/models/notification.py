"""Notification models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.ticket import utc_now


class NotificationType(str, Enum):
    """Kinds of in-app notifications."""

    TICKET_ASSIGNED = "ticket_assigned"
    TICKET_UNASSIGNED = "ticket_unassigned"
    TICKET_STATUS_CHANGED = "ticket_status_changed"


class Notification(BaseModel):
    """A message waiting in a user's inbox."""

    id: str
    type: NotificationType
    title: str
    message: str
    user_id: str
    ticket_id: Optional[str] = None
    actor_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    read: bool = False
