"""User models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from models.ticket import utc_now


class Role(str, Enum):
    """Account roles."""

    USER = "USER"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


ASSIGNABLE_ROLES = (Role.AGENT, Role.ADMIN)


class User(BaseModel):
    """Helpdesk account."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Role = Role.USER
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_eligible_assignee(self) -> bool:
        """Only active agents and admins may hold tickets."""
        return self.is_active and self.role in ASSIGNABLE_ROLES

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserSummary(BaseModel):
    """Public projection of a user embedded in reports."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
        )
