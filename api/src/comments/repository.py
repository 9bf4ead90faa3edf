"""Cassandra persistence for comment threads.

Writes to an existing thread are conditional on the version that was
loaded (lightweight transactions), so a writer that lost a race finds out
instead of overwriting the winner's change.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import Comment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CommentRepository:
    """Load and store whole Comment documents."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        ks = self.keyspace

        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {ks}.comments (
                comment_id, lesson_id, author_email, document, version,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._insert_by_lesson = self.session.prepare(f"""
            INSERT INTO {ks}.comments_by_lesson (
                lesson_id, created_at, comment_id, author_email
            ) VALUES (?, ?, ?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {ks}.comments WHERE comment_id = ?
        """)

        self._update_if_version = self.session.prepare(f"""
            UPDATE {ks}.comments
            SET document = ?, version = ?, updated_at = ?
            WHERE comment_id = ?
            IF version = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {ks}.comments WHERE comment_id = ?
            IF EXISTS
        """)

        self._delete_by_lesson = self.session.prepare(f"""
            DELETE FROM {ks}.comments_by_lesson
            WHERE lesson_id = ? AND created_at = ? AND comment_id = ?
        """)

        self._list_ids_by_lesson = self.session.prepare(f"""
            SELECT comment_id FROM {ks}.comments_by_lesson
            WHERE lesson_id = ?
            LIMIT ?
        """)

        self._count_by_lesson = self.session.prepare(f"""
            SELECT COUNT(*) FROM {ks}.comments_by_lesson
            WHERE lesson_id = ?
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get(self, comment_id: UUID) -> Comment | None:
        """Load a thread with its current version."""
        result = await self.session.aexecute(self._get_comment, [comment_id])
        row = result.one()
        return Comment.from_row(row) if row else None

    async def list_by_lesson(
        self, lesson_id: UUID, page: int, limit: int
    ) -> list[Comment]:
        """Newest-first page of threads for a lesson.

        Reads the id index up to the end of the requested page and loads
        each thread on the page. Threads deleted in between are skipped.
        """
        window = page * limit
        rows = await self.session.aexecute(
            self._list_ids_by_lesson, [lesson_id, window]
        )
        ids = [row.comment_id for row in rows][(page - 1) * limit :]

        comments = []
        for comment_id in ids:
            comment = await self.get(comment_id)
            if comment is not None:
                comments.append(comment)
        return comments

    async def count_by_lesson(self, lesson_id: UUID) -> int:
        """Number of threads on a lesson."""
        result = await self.session.aexecute(self._count_by_lesson, [lesson_id])
        row = result.one()
        return row.count if row else 0

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def insert(self, comment: Comment) -> Comment:
        """Store a new thread at version 1."""
        comment.version = 1
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.id,
                comment.lesson_id,
                comment.author.email,
                comment.to_document(),
                comment.version,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_by_lesson,
            [comment.lesson_id, comment.created_at, comment.id, comment.author.email],
        )
        return comment

    async def save_if_version(self, comment: Comment, expected_version: int) -> bool:
        """Store the thread only if nobody wrote it since it was loaded.

        On success ``comment.version`` is bumped to the stored value.

        Returns:
            True if the write was applied, False if the version moved on
        """
        new_version = expected_version + 1
        result = await self.session.aexecute(
            self._update_if_version,
            [
                comment.to_document(),
                new_version,
                comment.updated_at,
                comment.id,
                expected_version,
            ],
        )
        if not result.was_applied:
            logger.debug(
                "comment_version_conflict",
                comment_id=str(comment.id),
                expected_version=expected_version,
            )
            return False

        comment.version = new_version
        return True

    async def delete(self, comment: Comment) -> bool:
        """Remove a thread and its lesson index entry.

        Returns:
            False if the thread was already gone
        """
        result = await self.session.aexecute(self._delete_comment, [comment.id])
        await self.session.aexecute(
            self._delete_by_lesson,
            [comment.lesson_id, comment.created_at, comment.id],
        )
        return bool(result.was_applied)
