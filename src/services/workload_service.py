"""
Workload scoring.

``compute_workloads`` is a pure function over a snapshot of eligible assignees
and per-(assignee, status) ticket counts. ``WorkloadService`` takes that
snapshot from the repository on every call; nothing is cached between calls.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Tuple

from config.settings import Settings
from models.assignment import AssigneeWorkload, Workload
from models.ticket import Ticket, TicketStatus
from models.user import User, UserSummary

Counts = Mapping[Tuple[str, TicketStatus], int]


def compute_workloads(
    assignees: Iterable[User], counts: Counts, max_active_tickets: int = 10
) -> Dict[str, Workload]:
    """Build a Workload per eligible assignee. Users that cannot hold tickets are skipped."""
    workloads: Dict[str, Workload] = {}
    for user in assignees:
        if not user.is_eligible_assignee:
            continue
        open_count = counts.get((user.id, TicketStatus.OPEN), 0)
        in_progress_count = counts.get((user.id, TicketStatus.IN_PROGRESS), 0)
        workloads[user.id] = Workload(
            user_id=user.id,
            open_count=open_count,
            in_progress_count=in_progress_count,
            is_available=open_count + in_progress_count < max_active_tickets,
        )
    return workloads


def without_ticket(
    workloads: Mapping[str, Workload], ticket: Ticket, max_active_tickets: int = 10
) -> Dict[str, Workload]:
    """Workloads as if ``ticket`` had no assignee yet. The holder gets one fewer active ticket."""
    held = workloads.get(ticket.assigned_to) if ticket.assigned_to else None
    if held is None or not ticket.is_active:
        return dict(workloads)

    if ticket.status == TicketStatus.OPEN:
        update = {"open_count": max(held.open_count - 1, 0)}
    else:
        update = {"in_progress_count": max(held.in_progress_count - 1, 0)}
    adjusted = held.model_copy(update=update)
    adjusted = adjusted.model_copy(update={"is_available": adjusted.total < max_active_tickets})

    result = dict(workloads)
    result[held.user_id] = adjusted
    return result


class WorkloadService:
    """Reads a fresh snapshot and scores it."""

    def __init__(self, repository, settings: Settings = None):
        self.repository = repository
        self.settings = settings or Settings()

    def snapshot(self) -> Tuple[List[User], Dict[str, Workload]]:
        assignees = self.repository.list_active_assignees()
        counts = self.repository.count_tickets_by_assignee_and_status()
        return assignees, compute_workloads(
            assignees, counts, self.settings.max_active_tickets
        )

    def get_workloads(self) -> Dict[str, Workload]:
        return self.snapshot()[1]

    def get_assignee_workloads(self) -> List[AssigneeWorkload]:
        """Workload report, least loaded first."""
        assignees, workloads = self.snapshot()
        report = [
            AssigneeWorkload(
                user=UserSummary.from_user(user),
                open_count=workloads[user.id].open_count,
                in_progress_count=workloads[user.id].in_progress_count,
                total=workloads[user.id].total,
                is_available=workloads[user.id].is_available,
            )
            for user in sorted(assignees, key=lambda u: (u.created_at, u.id))
            if user.id in workloads
        ]
        # sort is stable, so equal loads keep seniority order
        report.sort(key=lambda item: item.total)
        return report
