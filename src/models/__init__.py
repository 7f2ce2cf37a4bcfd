"""Pydantic models for the helpdesk core."""

from models.assignment import (  # noqa: F401
    AssigneeWorkload,
    AssignmentEvent,
    AssignmentKind,
    AssignmentRecommendation,
    AssignmentStatistics,
    BulkAssignmentResult,
    BulkFailure,
    StatusChangeEvent,
    StatusStatistics,
    Workload,
)
from models.notification import Notification, NotificationType  # noqa: F401
from models.ticket import (  # noqa: F401
    Priority,
    Ticket,
    TicketCreate,
    TicketStatus,
    TicketUpdate,
)
from models.user import Role, User, UserSummary  # noqa: F401
