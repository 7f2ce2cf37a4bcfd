"""PostgreSQL repository using SQLAlchemy Core."""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool

from config.settings import Settings
from models.ticket import Ticket, TicketStatus
from models.user import Role, User
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Connection pooling reused across requests.
_engine = None

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR(64) PRIMARY KEY,
        email VARCHAR(255) NOT NULL UNIQUE,
        first_name VARCHAR(100) NOT NULL DEFAULT '',
        last_name VARCHAR(100) NOT NULL DEFAULT '',
        role VARCHAR(16) NOT NULL DEFAULT 'USER',
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tickets (
        id VARCHAR(64) PRIMARY KEY,
        title VARCHAR(200) NOT NULL,
        description TEXT NOT NULL,
        status VARCHAR(16) NOT NULL DEFAULT 'OPEN',
        priority VARCHAR(16) NOT NULL DEFAULT 'MEDIUM',
        created_by VARCHAR(64) NOT NULL REFERENCES users(id),
        assigned_to VARCHAR(64) REFERENCES users(id),
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tickets_assignee_status ON tickets (assigned_to, status)",
)

TICKET_COLUMNS = (
    "id, title, description, status, priority, created_by, assigned_to, created_at, updated_at"
)
USER_COLUMNS = "id, email, first_name, last_name, role, is_active, created_at"

# Columns a partial update may touch. created_by/created_at are immutable.
UPDATABLE_TICKET_COLUMNS = frozenset(
    {"title", "description", "status", "priority", "assigned_to", "updated_at"}
)


def get_db_engine(settings: Settings) -> Optional[Engine]:
    """Get or create SQLAlchemy engine with connection pooling."""
    global _engine
    if _engine is None:
        if not settings.database_url:
            logger.warning("DATABASE_URL not set; PostgreSQL repository unavailable")
            return None
        _engine = create_engine(
            settings.database_url,
            poolclass=QueuePool,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            pool_recycle=300,
        )
    return _engine


def create_schema(engine: Engine) -> None:
    """Create tables if they do not exist."""
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class PostgresRepository:
    """Thin wrapper to keep SQL organized and parameterized."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def fetch_one(self, query: str, params: dict) -> Optional[dict]:
        """Execute a SELECT and return one row as dict."""
        with self.engine.connect() as conn:
            row = conn.execute(text(query), params).fetchone()
            return dict(row._mapping) if row else None

    def fetch_all(self, query: str, params: dict) -> List[dict]:
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(text(query), params)]

    def execute(self, query: str, params: dict) -> int:
        """Execute a parameterized write and return the affected row count."""
        with self.engine.begin() as conn:
            return conn.execute(text(query), params).rowcount

    # Users

    def add_user(self, user: User) -> User:
        self.execute(
            f"INSERT INTO users ({USER_COLUMNS}) "
            "VALUES (:id, :email, :first_name, :last_name, :role, :is_active, :created_at)",
            {key: _db_value(value) for key, value in user.model_dump().items()},
        )
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        row = self.fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE id = :id", {"id": user_id})
        return User.model_validate(row) if row else None

    def list_active_assignees(self) -> List[User]:
        """Active agents/admins, most senior first."""
        rows = self.fetch_all(
            f"""
            SELECT {USER_COLUMNS} FROM users
            WHERE is_active = :active AND role IN (:agent, :admin)
            ORDER BY created_at, id
            """,
            {"active": True, "agent": Role.AGENT.value, "admin": Role.ADMIN.value},
        )
        return [User.model_validate(row) for row in rows]

    # Tickets

    def create_ticket(self, ticket: Ticket) -> Ticket:
        self.execute(
            f"INSERT INTO tickets ({TICKET_COLUMNS}) VALUES "
            "(:id, :title, :description, :status, :priority, :created_by, "
            ":assigned_to, :created_at, :updated_at)",
            {key: _db_value(value) for key, value in ticket.model_dump().items()},
        )
        return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        row = self.fetch_one(
            f"SELECT {TICKET_COLUMNS} FROM tickets WHERE id = :id", {"id": ticket_id}
        )
        return Ticket.model_validate(row) if row else None

    def update_ticket(self, ticket_id: str, fields: dict) -> Optional[Ticket]:
        """Partial single-row UPDATE. Returns None if no row matched."""
        unknown = set(fields) - UPDATABLE_TICKET_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update ticket columns: {sorted(unknown)}")
        if not fields:
            return self.get_ticket(ticket_id)

        assignments = ", ".join(f"{column} = :{column}" for column in sorted(fields))
        params = {key: _db_value(value) for key, value in fields.items()}
        params["ticket_id"] = ticket_id
        updated = self.execute(
            f"UPDATE tickets SET {assignments} WHERE id = :ticket_id", params
        )
        if updated == 0:
            return None
        return self.get_ticket(ticket_id)

    def delete_ticket(self, ticket_id: str) -> bool:
        return self.execute("DELETE FROM tickets WHERE id = :id", {"id": ticket_id}) > 0

    def list_tickets(
        self,
        created_by: Optional[str] = None,
        assigned_to: Optional[str] = None,
        status: Optional[TicketStatus] = None,
    ) -> List[Ticket]:
        """Filter tickets; newest update first."""
        clauses, params = [], {}
        if created_by is not None:
            clauses.append("created_by = :created_by")
            params["created_by"] = created_by
        if assigned_to is not None:
            clauses.append("assigned_to = :assigned_to")
            params["assigned_to"] = assigned_to
        if status is not None:
            clauses.append("status = :status")
            params["status"] = _db_value(status)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self.fetch_all(
            f"SELECT {TICKET_COLUMNS} FROM tickets {where} ORDER BY updated_at DESC", params
        )
        return [Ticket.model_validate(row) for row in rows]

    def count_tickets(
        self, status: Optional[TicketStatus] = None, assigned: Optional[bool] = None
    ) -> int:
        clauses, params = [], {}
        if status is not None:
            clauses.append("status = :status")
            params["status"] = _db_value(status)
        if assigned is not None:
            clauses.append("assigned_to IS NOT NULL" if assigned else "assigned_to IS NULL")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        row = self.fetch_one(f"SELECT COUNT(*) AS total FROM tickets {where}", params)
        return int(row["total"]) if row else 0

    def count_tickets_by_assignee_and_status(self) -> Dict[Tuple[str, TicketStatus], int]:
        rows = self.fetch_all(
            """
            SELECT assigned_to, status, COUNT(*) AS total
            FROM tickets
            WHERE assigned_to IS NOT NULL
            GROUP BY assigned_to, status
            """,
            {},
        )
        return {
            (row["assigned_to"], TicketStatus(row["status"])): int(row["total"])
            for row in rows
        }
