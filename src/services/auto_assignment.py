"""Workload-balancing strategy for automatic assignment."""

from __future__ import annotations

from typing import Iterable, List, Mapping

from models.assignment import AssignmentRecommendation, Workload
from models.user import User, UserSummary
from utils.error_handling import NotAvailableError


def rank_assignees(
    assignees: Iterable[User], workloads: Mapping[str, Workload]
) -> List[AssignmentRecommendation]:
    """
    Rank eligible assignees, least loaded first.

    Ties go to the earliest account ``created_at`` and then to the lowest id, so
    the same snapshot always produces the same order. Ticket priority plays no
    part in the ranking.
    """
    candidates = [
        user for user in assignees if user.is_eligible_assignee and user.id in workloads
    ]
    candidates.sort(key=lambda u: (workloads[u.id].total, u.created_at, u.id))

    ranked = []
    for user in candidates:
        load = workloads[user.id]
        reasons = [
            f"{load.total} active tickets "
            f"({load.open_count} open, {load.in_progress_count} in progress)",
            "Below capacity" if load.is_available else "At capacity",
        ]
        ranked.append(
            AssignmentRecommendation(
                user_id=user.id,
                score=load.total,
                user=UserSummary.from_user(user),
                reasons=reasons,
            )
        )
    return ranked


def pick_assignee(
    assignees: Iterable[User], workloads: Mapping[str, Workload]
) -> AssignmentRecommendation:
    """Top-ranked candidate, or NotAvailableError if nobody qualifies."""
    ranked = rank_assignees(assignees, workloads)
    if not ranked:
        raise NotAvailableError("No active agent or admin is available for assignment")
    return ranked[0]
