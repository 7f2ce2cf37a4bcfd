"""
Ticket status lifecycle tests.

Run with: pytest tests/unit/test_lifecycle.py -v
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

SRC_PATH = Path(__file__).parent.parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from models.ticket import TicketStatus  # noqa: E402
from services.lifecycle_service import TicketLifecycleService, valid_transitions  # noqa: E402
from utils.error_handling import ForbiddenError, NotFoundError, ValidationError  # noqa: E402


class TestTransitions:
    def test_every_state_reaches_every_other(self):
        assert valid_transitions(TicketStatus.OPEN) == [TicketStatus.IN_PROGRESS, TicketStatus.CLOSED]
        assert valid_transitions("CLOSED") == [TicketStatus.OPEN, TicketStatus.IN_PROGRESS]

    def test_unknown_state(self):
        with pytest.raises(ValidationError) as exc_info:
            valid_transitions("ARCHIVED")
        assert exc_info.value.code == "INVALID_STATUS"


class TestChangeStatus:
    def test_agent_reopens_closed_ticket(self, lifecycle_service, repo):
        repo.update_ticket("t1", {"status": TicketStatus.CLOSED})

        ticket = lifecycle_service.change_status("t1", "OPEN", "agent-a")

        assert ticket.status == TicketStatus.OPEN

    def test_non_creator_user_cannot_reopen(self, lifecycle_service, repo):
        repo.update_ticket("t1", {"status": TicketStatus.CLOSED})

        with pytest.raises(ForbiddenError):
            lifecycle_service.change_status("t1", TicketStatus.OPEN, "user-2")
        assert repo.get_ticket("t1").status == TicketStatus.CLOSED

    def test_creator_cannot_edit_once_closed(self, lifecycle_service, repo):
        lifecycle_service.change_status("t1", "CLOSED", "user-1")
        with pytest.raises(ForbiddenError):
            lifecycle_service.change_status("t1", "OPEN", "user-1")

    def test_status_change_keeps_assignee(self, lifecycle_service, repo):
        repo.update_ticket("t1", {"assigned_to": "agent-b"})
        ticket = lifecycle_service.change_status("t1", "IN_PROGRESS", "agent-b")
        assert ticket.assigned_to == "agent-b"
        assert ticket.status == TicketStatus.IN_PROGRESS

    def test_emits_event_and_bumps_updated_at(self, lifecycle_service, repo, publisher):
        before = repo.get_ticket("t2")
        ticket = lifecycle_service.change_status("t2", "closed", "admin", reason="fixed")

        assert ticket.updated_at > before.updated_at
        event = publisher.events[-1]
        assert event.from_status == TicketStatus.OPEN
        assert event.to_status == TicketStatus.CLOSED
        assert event.actor_id == "admin"
        assert event.reason == "fixed"

    def test_same_status_is_noop(self, lifecycle_service, publisher):
        ticket = lifecycle_service.change_status("t1", "OPEN", "agent-a")
        assert ticket.status == TicketStatus.OPEN
        assert publisher.events == []

    def test_invalid_status_token(self, lifecycle_service):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle_service.change_status("t1", "DONE", "admin")
        assert exc_info.value.code == "INVALID_STATUS"

    def test_missing_ticket(self, lifecycle_service):
        with pytest.raises(NotFoundError) as exc_info:
            lifecycle_service.change_status("missing", "OPEN", "admin")
        assert exc_info.value.code == "TICKET_NOT_FOUND"

    def test_notifies_creator_and_assignee_but_not_actor(self, lifecycle_service, repo, notifier):
        repo.update_ticket("t1", {"assigned_to": "agent-a"})
        lifecycle_service.change_status("t1", "IN_PROGRESS", "agent-a")

        assert notifier.get_unread_count("user-1") == 1
        assert notifier.get_unread_count("agent-a") == 0

    def test_notification_failure_is_swallowed(self, repo):
        notifier = MagicMock()
        notifier.notify_status_change.side_effect = RuntimeError("down")
        service = TicketLifecycleService(repo, notifier=notifier)

        assert service.change_status("t1", "CLOSED", "admin").status == TicketStatus.CLOSED


class TestStatusStatistics:
    def test_counts_and_percentages(self, lifecycle_service):
        lifecycle_service.change_status("t3", "CLOSED", "admin")

        stats = lifecycle_service.get_status_statistics()

        assert stats.total == 3
        assert stats.counts[TicketStatus.OPEN] == 2
        assert stats.counts[TicketStatus.IN_PROGRESS] == 0
        assert stats.percentages[TicketStatus.OPEN] == 67
        assert stats.percentages[TicketStatus.CLOSED] == 33

    def test_empty_store(self):
        from repositories.memory_repo import InMemoryRepository

        stats = TicketLifecycleService(InMemoryRepository()).get_status_statistics()
        assert stats.total == 0
        assert set(stats.percentages.values()) == {0}
