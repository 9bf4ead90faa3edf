"""Database models for the audit (change) log.

The same entry is written to three tables so each listing is a single
partition read:
- by target type: global admin listing, newest first
- by actor email: "what did I do"
- by target owner email: "what happened to my content"
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class TargetType(str, Enum):
    """Kinds of entities an audit entry can point at."""

    COMMENT = "comment"
    LESSON = "lesson"
    USER = "user"
    REPORT = "report"
    PAYMENT = "payment"


class AuditAction(str, Enum):
    """Audited actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


_CHANGE_LOG_COLUMNS = """
    log_id UUID,
    actor_email TEXT,
    actor_name TEXT,
    actor_role TEXT,
    target_type TEXT,
    target_id TEXT,
    target_owner_email TEXT,
    action TEXT,
    summary TEXT,
    metadata MAP<TEXT, TEXT>,
    created_at TIMESTAMP,
"""

CHANGE_LOG_BY_TARGET_TYPE_TABLE_CQL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.change_log_by_target_type ("
    + _CHANGE_LOG_COLUMNS
    + """
    PRIMARY KEY ((target_type), created_at, log_id)
) WITH CLUSTERING ORDER BY (created_at DESC, log_id ASC)
"""
)

CHANGE_LOG_BY_ACTOR_TABLE_CQL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.change_log_by_actor ("
    + _CHANGE_LOG_COLUMNS
    + """
    PRIMARY KEY ((actor_email), created_at, log_id)
) WITH CLUSTERING ORDER BY (created_at DESC, log_id ASC)
"""
)

CHANGE_LOG_BY_OWNER_TABLE_CQL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.change_log_by_owner ("
    + _CHANGE_LOG_COLUMNS
    + """
    PRIMARY KEY ((target_owner_email), created_at, log_id)
) WITH CLUSTERING ORDER BY (created_at DESC, log_id ASC)
"""
)

AUDIT_TABLES_CQL = [
    CHANGE_LOG_BY_TARGET_TYPE_TABLE_CQL,
    CHANGE_LOG_BY_ACTOR_TABLE_CQL,
    CHANGE_LOG_BY_OWNER_TABLE_CQL,
]


@dataclass
class ChangeLog:
    """A single audit entry."""

    log_id: UUID
    actor_email: str
    actor_name: str
    actor_role: str
    target_type: str
    target_id: str
    target_owner_email: str | None
    action: str
    summary: str
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "ChangeLog":
        """Create ChangeLog from Cassandra row."""
        return cls(
            log_id=row.log_id,
            actor_email=row.actor_email,
            actor_name=row.actor_name or "",
            actor_role=row.actor_role or "user",
            target_type=row.target_type,
            target_id=row.target_id or "",
            target_owner_email=row.target_owner_email,
            action=row.action,
            summary=row.summary or "",
            metadata=dict(row.metadata or {}),
            created_at=row.created_at,
        )

    def values(self) -> list[Any]:
        """Column values in table order, for the insert statements."""
        return [
            self.log_id,
            self.actor_email,
            self.actor_name,
            self.actor_role,
            self.target_type,
            self.target_id,
            self.target_owner_email,
            self.action,
            self.summary,
            self.metadata,
            self.created_at,
        ]


def create_change_log(
    actor_email: str,
    target_type: TargetType | str,
    action: AuditAction | str,
    actor_name: str | None = None,
    actor_role: str | None = None,
    target_id: str | None = None,
    target_owner_email: str | None = None,
    summary: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> ChangeLog:
    """Create a change log entry with normalized fields.

    Emails are lowercased and metadata values stringified to fit the
    ``MAP<TEXT, TEXT>`` column.
    """
    return ChangeLog(
        log_id=uuid4(),
        actor_email=actor_email.strip().lower(),
        actor_name=actor_name or "",
        actor_role=actor_role or "user",
        target_type=TargetType(target_type).value,
        target_id=target_id or "",
        target_owner_email=target_owner_email.strip().lower()
        if target_owner_email
        else None,
        action=AuditAction(action).value,
        summary=summary or "",
        metadata={k: str(v) for k, v in (metadata or {}).items()},
    )
