"""Lesson lookups backed by Cassandra."""

from typing import TYPE_CHECKING
from uuid import UUID

from .models import Lesson


if TYPE_CHECKING:
    from cassandra.cluster import Session


class LessonService:
    """Read-only lesson access for the comment system."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._get_lesson_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.lessons WHERE id = ?"
        )

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        """Get lesson by ID."""
        result = await self.session.aexecute(self._get_lesson_by_id, [lesson_id])
        row = result.one()
        return Lesson.from_row(row) if row else None
