"""Wire repositories, publishers and services from Settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from config.settings import Settings
from repositories.dynamodb_repo import AssignmentHistoryRepository
from repositories.memory_repo import InMemoryRepository
from repositories.postgres_repo import PostgresRepository, get_db_engine
from services.assignment_service import AssignmentService
from services.bulk_assignment_service import BulkAssignmentService
from services.event_publisher import DynamoDbEventPublisher, InMemoryEventPublisher
from services.lifecycle_service import TicketLifecycleService
from services.notification_service import NotificationService
from services.ticket_service import TicketService
from services.workload_service import WorkloadService
from utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything a request handler needs."""

    settings: Settings
    repository: Any
    publisher: InMemoryEventPublisher
    notifications: NotificationService
    workloads: WorkloadService
    assignments: AssignmentService
    lifecycle: TicketLifecycleService
    bulk: BulkAssignmentService
    tickets: TicketService


def create_repository(settings: Settings):
    backend = settings.repository_backend
    if backend == "memory":
        return InMemoryRepository()
    if backend == "postgres":
        engine = get_db_engine(settings)
        if engine is None:
            raise ValueError("DATABASE_URL is required for the postgres backend")
        return PostgresRepository(engine)
    raise ValueError(f"Unknown repository backend: {backend}")


def create_services(settings: Settings = None) -> Services:
    settings = settings or Settings.from_environment()
    repository = create_repository(settings)

    publisher = InMemoryEventPublisher(max_events=settings.event_history_limit)
    if settings.assignment_history_table:
        history = AssignmentHistoryRepository(
            settings.assignment_history_table, region_name=settings.aws_region
        )
        publisher.subscribe(DynamoDbEventPublisher(history).publish)

    notifications = NotificationService(settings)
    workloads = WorkloadService(repository, settings)
    assignments = AssignmentService(
        repository,
        notifier=notifications,
        publisher=publisher,
        settings=settings,
        workload_service=workloads,
    )
    lifecycle = TicketLifecycleService(repository, publisher=publisher, notifier=notifications)

    logger.info(
        "Services initialised",
        extra={
            "environment": settings.environment,
            "repository_backend": settings.repository_backend,
            "history_table": settings.assignment_history_table or None,
        },
    )
    return Services(
        settings=settings,
        repository=repository,
        publisher=publisher,
        notifications=notifications,
        workloads=workloads,
        assignments=assignments,
        lifecycle=lifecycle,
        bulk=BulkAssignmentService(assignments, lifecycle),
        tickets=TicketService(repository),
    )
