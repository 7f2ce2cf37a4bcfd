"""Models produced by the assignment and lifecycle services."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from models.ticket import TicketStatus, utc_now
from models.user import UserSummary


class AssignmentKind(str, Enum):
    """What kind of assignee change an event records."""

    ASSIGN = "ASSIGN"
    UNASSIGN = "UNASSIGN"
    REASSIGN = "REASSIGN"
    AUTO_ASSIGN = "AUTO_ASSIGN"


class AssignmentEvent(BaseModel):
    """Audit/broadcast record for one assignee change."""

    ticket_id: str
    from_assignee: Optional[str] = None
    to_assignee: Optional[str] = None
    actor_id: str
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    kind: AssignmentKind


class StatusChangeEvent(BaseModel):
    """Audit/broadcast record for one status transition."""

    ticket_id: str
    from_status: TicketStatus
    to_status: TicketStatus
    actor_id: str
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class Workload(BaseModel):
    """Active ticket counts for one eligible assignee. Computed, never stored."""

    user_id: str
    open_count: int = 0
    in_progress_count: int = 0
    is_available: bool = True

    @computed_field
    @property
    def total(self) -> int:
        return self.open_count + self.in_progress_count


class AssigneeWorkload(BaseModel):
    """Workload joined with the user for reporting."""

    user: UserSummary
    open_count: int
    in_progress_count: int
    total: int
    is_available: bool


class AssignmentRecommendation(BaseModel):
    """One ranked candidate. Lower score means less loaded."""

    user_id: str
    score: int
    user: UserSummary
    reasons: List[str] = Field(default_factory=list)


class BulkFailure(BaseModel):
    """Why one ticket in a bulk request was not processed."""

    ticket_id: str
    error_code: str
    code: str
    message: str


class BulkAssignmentResult(BaseModel):
    """Per-item outcome of a bulk operation."""

    succeeded: List[str] = Field(default_factory=list)
    failed: List[BulkFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class AssignmentStatistics(BaseModel):
    """Snapshot of how many tickets currently have an owner."""

    total_assigned: int
    unassigned: int


class StatusStatistics(BaseModel):
    """Ticket counts per status with rounded percentages."""

    total: int
    counts: Dict[TicketStatus, int]
    percentages: Dict[TicketStatus, int]
