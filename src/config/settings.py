"""
Environment-specific configuration settings.

Defaults keep everything in-process so the core runs without a database.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Application settings with local-friendly defaults."""

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    # Persistence: "memory" or "postgres"
    repository_backend: str = "memory"
    database_url: str = ""
    db_pool_size: int = 1
    db_max_overflow: int = 2

    # Assignment history sink (DynamoDB). Empty table name disables it.
    aws_region: str = "eu-west-2"
    assignment_history_table: str = ""

    # Assignment
    max_active_tickets: int = 10  # workload above this is reported as unavailable

    # Notifications
    notification_history_limit: int = 50

    # Events retained by the in-process publisher
    event_history_limit: int = 100

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        database_url = os.environ.get("DATABASE_URL", "")
        backend = os.environ.get(
            "REPOSITORY_BACKEND", "postgres" if database_url else "memory"
        ).lower()

        common = dict(
            environment=env,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            repository_backend=backend,
            database_url=database_url,
            aws_region=os.environ.get("AWS_REGION", "eu-west-2"),
            assignment_history_table=os.environ.get("ASSIGNMENT_HISTORY_TABLE", ""),
            max_active_tickets=int(os.environ.get("MAX_ACTIVE_TICKETS", "10")),
            notification_history_limit=int(
                os.environ.get("NOTIFICATION_HISTORY_LIMIT", "50")
            ),
            event_history_limit=int(os.environ.get("EVENT_HISTORY_LIMIT", "100")),
        )

        # Production overrides
        if env == "prod":
            return cls(db_pool_size=5, db_max_overflow=10, **common)

        return cls(**common)
