"""Ticket models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TicketStatus(str, Enum):
    """Lifecycle states. Tokens are shared verbatim with every collaborator."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    CLOSED = "CLOSED"


class Priority(str, Enum):
    """Ticket priority levels."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


ACTIVE_STATUSES = (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)


class Ticket(BaseModel):
    """A support request as stored by the persistence layer."""

    id: str
    title: str
    description: str
    status: TicketStatus = TicketStatus.OPEN
    priority: Priority = Priority.MEDIUM
    created_by: str
    assigned_to: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class TicketCreate(BaseModel):
    """Inbound payload for a new ticket."""

    title: str = Field(..., min_length=3, max_length=200)
    description: str
    priority: Priority = Priority.MEDIUM

    @field_validator("title", "description")
    @classmethod
    def validate_required(cls, value: str) -> str:
        """Reject blank strings before anything is written."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("title and description must be provided")
        return cleaned


class TicketUpdate(BaseModel):
    """Direct edits. Only content fields; status and assignee have their own paths."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = None
    priority: Optional[Priority] = None

    @field_validator("title", "description")
    @classmethod
    def reject_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title and description cannot be blank")
        return cleaned

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)
