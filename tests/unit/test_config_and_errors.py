"""
Settings, error helpers, logging and service wiring.
"""

import json
import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

SRC_PATH = Path(__file__).parent.parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from config.settings import Settings  # noqa: E402
from utils.error_handling import (  # noqa: E402
    ConflictError,
    ForbiddenError,
    NotAvailableError,
    ValidationError,
    to_response,
    ticket_not_found,
    user_not_found,
)
from utils.validators import ensure_id_list, ensure_present, parse_status  # noqa: E402


class TestSettings:
    def test_defaults_are_in_process(self, monkeypatch):
        for name in ("DATABASE_URL", "REPOSITORY_BACKEND", "ASSIGNMENT_HISTORY_TABLE"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_environment()

        assert settings.repository_backend == "memory"
        assert settings.max_active_tickets == 10
        assert settings.notification_history_limit == 50
        assert settings.assignment_history_table == ""

    def test_database_url_selects_postgres(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://u:p@localhost/helpdesk")
        monkeypatch.delenv("REPOSITORY_BACKEND", raising=False)
        assert Settings.from_environment().repository_backend == "postgres"

    def test_prod_overrides_pool(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "prod")
        monkeypatch.setenv("MAX_ACTIVE_TICKETS", "15")

        settings = Settings.from_environment()

        assert settings.db_pool_size == 5
        assert settings.db_max_overflow == 10
        assert settings.max_active_tickets == 15

    def test_event_history_limit(self, monkeypatch):
        monkeypatch.setenv("EVENT_HISTORY_LIMIT", "25")
        assert Settings.from_environment().event_history_limit == 25
        assert Settings().event_history_limit == 100


class TestErrors:
    @pytest.mark.parametrize(
        "error,error_code,status_code,code",
        [
            (ValidationError(), "VALIDATION", 422, "INVALID_INPUT"),
            (ForbiddenError(), "FORBIDDEN", 403, "FORBIDDEN"),
            (ConflictError(code="INELIGIBLE_ASSIGNEE"), "CONFLICT", 409, "INELIGIBLE_ASSIGNEE"),
            (NotAvailableError(), "NOT_AVAILABLE", 409, "NO_ELIGIBLE_ASSIGNEE"),
            (ticket_not_found("t9"), "NOT_FOUND", 404, "TICKET_NOT_FOUND"),
            (user_not_found("u9"), "NOT_FOUND", 404, "USER_NOT_FOUND"),
        ],
    )
    def test_taxonomy(self, error, error_code, status_code, code):
        assert error.error_code == error_code
        assert error.status_code == status_code
        assert error.code == code

    def test_to_response(self):
        response = to_response(ticket_not_found("t9"))

        assert response["statusCode"] == 404
        body = json.loads(response["body"])
        assert body == {
            "status": "error",
            "error_code": "NOT_FOUND",
            "code": "TICKET_NOT_FOUND",
            "message": "Ticket with ID t9 not found",
        }


class TestValidators:
    @pytest.mark.parametrize("value", [None, "", "   ", []])
    def test_ensure_present_rejects_blank(self, value):
        with pytest.raises(ValidationError):
            ensure_present(value, "field")

    def test_ensure_id_list_dedupes(self):
        assert ensure_id_list(["b", "a", "b"]) == ["b", "a"]

    def test_ensure_id_list_accepts_any_iterable(self):
        assert ensure_id_list(("t1", "t2")) == ["t1", "t2"]
        assert ensure_id_list(ticket_id for ticket_id in ["t2", "t1", "t2"]) == ["t2", "t1"]
        assert ensure_id_list({"t1": None}.keys()) == ["t1"]

    @pytest.mark.parametrize("value", [[], None, "t1", b"t1", {"t1": 1}, 7, iter([])])
    def test_ensure_id_list_rejects_non_lists(self, value):
        with pytest.raises(ValidationError) as exc_info:
            ensure_id_list(value)
        assert exc_info.value.code == "INVALID_INPUT"

    @pytest.mark.parametrize("value", [["t1", 2], ["t1", None], ["t1", "  "], [["t1"]]])
    def test_ensure_id_list_requires_string_ids(self, value):
        with pytest.raises(ValidationError) as exc_info:
            ensure_id_list(value)
        assert exc_info.value.code == "INVALID_INPUT"

    def test_parse_status_is_case_insensitive(self):
        assert parse_status("in_progress").value == "IN_PROGRESS"


class TestLogging:
    def test_business_event_carries_context(self):
        from utils.logging_config import get_logger, log_business_event

        logger = get_logger("tests.business_events")
        with patch.object(logger, "info") as info:
            log_business_event(logger, "ticket_assigned", ticket_id="t1")
        info.assert_called_once_with(
            "ticket_assigned", extra={"event": "ticket_assigned", "ticket_id": "t1"}
        )

    def test_logger_configured_once(self):
        from utils.logging_config import get_logger

        first = get_logger("tests.once")
        second = get_logger("tests.once")
        assert first is second
        assert len(first.handlers) == 1
        assert first.propagate is False
        assert isinstance(first, logging.Logger)


class TestBootstrap:
    def test_memory_services_share_one_repository(self):
        from services.bootstrap import create_services

        services = create_services(Settings())

        assert services.assignments.repository is services.repository
        assert services.lifecycle.repository is services.repository
        assert services.bulk.assignments is services.assignments

    def test_publisher_retention_follows_settings(self):
        from models.assignment import AssignmentEvent, AssignmentKind
        from services.bootstrap import create_services

        services = create_services(Settings(event_history_limit=2))
        for ticket_id in ("t1", "t2", "t3"):
            services.publisher.publish(
                AssignmentEvent(ticket_id=ticket_id, actor_id="admin", kind=AssignmentKind.ASSIGN)
            )

        assert [e.ticket_id for e in services.publisher.events] == ["t2", "t3"]

    def test_history_table_subscribes_dynamodb_sink(self):
        from models.assignment import AssignmentEvent, AssignmentKind
        from services.bootstrap import create_services

        with patch("repositories.dynamodb_repo.boto3") as mock_boto3:
            table = MagicMock()
            mock_boto3.resource.return_value.Table.return_value = table
            services = create_services(Settings(assignment_history_table="assignment-history"))

            services.publisher.publish(
                AssignmentEvent(ticket_id="t1", actor_id="admin", kind=AssignmentKind.ASSIGN)
            )

        mock_boto3.resource.return_value.Table.assert_called_once_with("assignment-history")
        table.put_item.assert_called_once()

    def test_postgres_backend_requires_url(self):
        from repositories import postgres_repo
        from services.bootstrap import create_services

        with patch.object(postgres_repo, "_engine", None):
            with pytest.raises(ValueError):
                create_services(Settings(repository_backend="postgres", database_url=""))

    def test_unknown_backend(self):
        from services.bootstrap import create_services

        with pytest.raises(ValueError):
            create_services(Settings(repository_backend="redis"))
