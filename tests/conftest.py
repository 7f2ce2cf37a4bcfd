"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from services.policy import can_assign` to work
when running tests, matching how the code is deployed with src/ as the root.
Shared fixtures build a small helpdesk in memory: one admin, two agents with
different seniority, an inactive agent, two end users and three open tickets.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add repository root AND src/ to sys.path if missing."""
    repo_root = Path(__file__).resolve().parents[1]
    src_root = repo_root / "src"

    root_str = str(repo_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)

    # src/ is the import root (from services import ...)
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Create a default boto3 session so resources/clients do not error during import.
boto3.setup_default_session(region_name="eu-west-2")


def at(year: int, month: int = 1, day: int = 1) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.fixture
def users():
    from models.user import Role, User

    return {
        "admin": User(id="admin", email="admin@example.com", first_name="Ada",
                      role=Role.ADMIN, created_at=at(2020)),
        "agent_a": User(id="agent-a", email="a@example.com", first_name="Alex",
                        role=Role.AGENT, created_at=at(2021)),
        "agent_b": User(id="agent-b", email="b@example.com", first_name="Blake",
                        role=Role.AGENT, created_at=at(2022)),
        "inactive": User(id="agent-x", email="x@example.com", first_name="Xan",
                         role=Role.AGENT, is_active=False, created_at=at(2019)),
        "customer": User(id="user-1", email="u1@example.com", first_name="Uma",
                         role=Role.USER, created_at=at(2023)),
        "other_customer": User(id="user-2", email="u2@example.com", first_name="Ulf",
                               role=Role.USER, created_at=at(2023, 6)),
    }


@pytest.fixture
def repo(users):
    from models.ticket import Ticket
    from repositories.memory_repo import InMemoryRepository

    repository = InMemoryRepository()
    for user in users.values():
        repository.add_user(user)
    for index, ticket_id in enumerate(("t1", "t2", "t3"), start=1):
        repository.create_ticket(
            Ticket(
                id=ticket_id,
                title=f"Printer issue {index}",
                description="The office printer is jammed again",
                created_by=users["customer"].id,
                created_at=at(2024, 1, index),
                updated_at=at(2024, 1, index),
            )
        )
    return repository


@pytest.fixture
def publisher():
    from services.event_publisher import InMemoryEventPublisher

    return InMemoryEventPublisher()


@pytest.fixture
def notifier():
    from services.notification_service import NotificationService

    return NotificationService()


@pytest.fixture
def assignment_service(repo, notifier, publisher):
    from services.assignment_service import AssignmentService

    return AssignmentService(repo, notifier=notifier, publisher=publisher)


@pytest.fixture
def lifecycle_service(repo, notifier, publisher):
    from services.lifecycle_service import TicketLifecycleService

    return TicketLifecycleService(repo, publisher=publisher, notifier=notifier)
