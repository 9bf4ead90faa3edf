"""Database models for user profiles.

Profiles are keyed by lowercased email, the identity key carried by tokens
from the identity provider. Display name and photo are snapshotted onto
comments at creation time, so later profile edits never rewrite history.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.auth.permissions import UserRole, parse_role


DEFAULT_DISPLAY_NAME = "User"

USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    email TEXT PRIMARY KEY,
    name TEXT,
    photo_url TEXT,
    bio TEXT,
    role TEXT,
    is_premium BOOLEAN,
    status TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USERS_TABLES_CQL = [USER_TABLE_CQL]


@dataclass
class UserProfile:
    """Profile fields needed to build a requester identity."""

    email: str
    name: str | None
    photo_url: str | None
    role: UserRole
    is_premium: bool
    status: str = "active"
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "UserProfile":
        """Create UserProfile from Cassandra row."""
        return cls(
            email=row.email,
            name=row.name,
            photo_url=row.photo_url,
            role=parse_role(row.role),
            is_premium=bool(row.is_premium),
            status=row.status or "active",
            created_at=row.created_at,
        )
