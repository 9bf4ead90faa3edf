"""Database models for lessons.

Only the fields the comment system reads are modeled here: existence,
title (for audit summaries) and creator email (audit target owner).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class LessonVisibility(str, Enum):
    """Who can see a lesson."""

    PUBLIC = "public"
    PRIVATE = "private"
    DRAFT = "draft"


class AccessLevel(str, Enum):
    """Subscription tier needed to read a lesson."""

    FREE = "free"
    PREMIUM = "premium"


LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    category TEXT,
    visibility TEXT,
    access_level TEXT,
    creator_email TEXT,
    creator_name TEXT,
    is_archived BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

LESSONS_TABLES_CQL = [LESSON_TABLE_CQL]


@dataclass
class Lesson:
    """Lesson as seen by the comment system."""

    id: UUID
    title: str
    creator_email: str
    creator_name: str | None = None
    visibility: LessonVisibility = LessonVisibility.PUBLIC
    access_level: AccessLevel = AccessLevel.FREE
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            creator_email=(row.creator_email or "").lower(),
            creator_name=row.creator_name,
            visibility=LessonVisibility(row.visibility or "public"),
            access_level=AccessLevel(row.access_level or "free"),
            created_at=row.created_at,
        )
