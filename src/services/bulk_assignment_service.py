"""
Bulk operations over many tickets.

The request is validated once up front. After that every ticket is processed
on its own, in first-seen order, and its outcome appended to an accumulator;
one ticket failing never stops the rest. The accumulator is partitioned into
the result at the end, so ``succeeded`` plus ``failed`` always covers every
distinct id exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from models.assignment import BulkAssignmentResult, BulkFailure
from services.assignment_service import AssignmentService
from services.lifecycle_service import TicketLifecycleService
from utils.error_handling import AppError
from utils.logging_config import get_logger, log_business_event
from utils.validators import ensure_id_list, ensure_present, parse_status

logger = get_logger(__name__)


@dataclass(frozen=True)
class Outcome:
    """One processed ticket: success when ``failure`` is None."""

    ticket_id: str
    failure: Optional[BulkFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def partition(outcomes: List[Outcome]) -> BulkAssignmentResult:
    return BulkAssignmentResult(
        succeeded=[o.ticket_id for o in outcomes if o.ok],
        failed=[o.failure for o in outcomes if not o.ok],
    )


class BulkAssignmentService:
    """Applies single-ticket operations across a list of ids."""

    def __init__(
        self,
        assignment_service: AssignmentService,
        lifecycle_service: TicketLifecycleService = None,
    ):
        self.assignments = assignment_service
        self.lifecycle = lifecycle_service

    def bulk_assign_tickets(
        self, ticket_ids: List[str], assignee_id: str, actor_id: str, reason: str = None
    ) -> BulkAssignmentResult:
        ids = ensure_id_list(ticket_ids)
        ensure_present(assignee_id, "assignee_id", code="MISSING_ASSIGNEE")

        outcomes = [
            self._run(ticket_id, self.assignments.assign_ticket, assignee_id, actor_id, reason)
            for ticket_id in ids
        ]
        result = partition(outcomes)
        log_business_event(
            logger,
            "bulk_assign_completed",
            assignee_id=assignee_id,
            actor_id=actor_id,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    def bulk_change_status(
        self, ticket_ids: List[str], new_status, actor_id: str, reason: str = None
    ) -> BulkAssignmentResult:
        if self.lifecycle is None:
            raise RuntimeError("Bulk status change requires a lifecycle service")
        ids = ensure_id_list(ticket_ids)
        status = parse_status(new_status)

        outcomes = [
            self._run(ticket_id, self.lifecycle.change_status, status, actor_id, reason)
            for ticket_id in ids
        ]
        result = partition(outcomes)
        log_business_event(
            logger,
            "bulk_status_change_completed",
            to_status=status.value,
            actor_id=actor_id,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )
        return result

    def _run(self, ticket_id: str, operation: Callable, *args) -> Outcome:
        try:
            operation(ticket_id, *args)
        except AppError as exc:
            return Outcome(
                ticket_id,
                BulkFailure(
                    ticket_id=ticket_id,
                    error_code=exc.error_code,
                    code=exc.code,
                    message=exc.message,
                ),
            )
        except Exception:
            logger.exception("Bulk item failed unexpectedly", extra={"ticket_id": ticket_id})
            return Outcome(
                ticket_id,
                BulkFailure(
                    ticket_id=ticket_id,
                    error_code="INTERNAL",
                    code="INTERNAL",
                    message="Unexpected error while processing ticket",
                ),
            )
        return Outcome(ticket_id)
