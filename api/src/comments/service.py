"""Comment system service layer.

Business logic for:
- Comment and reply CRUD on a bounded-depth thread
- Reaction toggling at any depth
- Author-only edits and deletes
- Creation rate limiting
- Audit trail for comment creation and deletion

Every write reloads the thread, applies the change in memory and saves it
conditionally on the loaded version, retrying from a fresh load when a
concurrent writer got there first.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar
from uuid import UUID

import structlog

from src.audit import AuditAction, TargetType
from src.auth.schemas import Requester
from src.core.redis import creation_rate_keys

from . import tree
from .exceptions import (
    CommentNotFoundError,
    ConcurrentModificationError,
    InvalidInputError,
    LessonNotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    UnauthenticatedError,
)
from .models import (
    Author,
    Comment,
    ReactionEmoji,
    ReplyNode,
    create_comment,
    create_reply,
)
from .tree import CommentPath


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from src.audit import AuditService
    from src.lessons import LessonService

    from .repository import CommentRepository


logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class CommentPage:
    """One page of a lesson's threads, newest first."""

    comments: list[Comment]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def require_requester(requester: Requester | None) -> Requester:
    """Reject calls without an identity.

    Returns the requester with its email lowercased, the form stored on
    authors and reactions.
    """
    if requester is None or not requester.email or not requester.email.strip():
        raise UnauthenticatedError()
    email = requester.email.strip().lower()
    if email == requester.email:
        return requester
    return requester.model_copy(update={"email": email})


def normalize_content(content: str | None, max_length: int, label: str) -> str:
    """Trim content and reject empty or oversized text."""
    text = (content or "").strip()
    if not text:
        raise InvalidInputError(f"{label} content is required")
    if len(text) > max_length:
        raise InvalidInputError(
            f"{label} content must be at most {max_length} characters"
        )
    return text


class CommentService:
    """Service for lesson comment threads."""

    def __init__(
        self,
        repository: "CommentRepository",
        lesson_service: "LessonService",
        audit_service: "AuditService | None" = None,
        redis: "Redis | None" = None,
        max_write_retries: int = 5,
        max_content_length: int = 5000,
        comments_per_minute: int = 10,
        comments_per_hour: int = 100,
    ):
        self.repository = repository
        self.lesson_service = lesson_service
        self.audit_service = audit_service
        self.redis = redis
        self.max_write_retries = max_write_retries
        self.max_content_length = max_content_length
        self.comments_per_minute = comments_per_minute
        self.comments_per_hour = comments_per_hour

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_rate_limit(self, author_email: str) -> None:
        """Raise RateLimitExceededError if the author is over either window."""
        if not self.redis:
            return

        key_minute, key_hour = creation_rate_keys(author_email)

        minute_count = await self.redis.get(key_minute)
        if minute_count and int(minute_count) >= self.comments_per_minute:
            raise RateLimitExceededError(
                "Too many comments per minute, please wait a moment"
            )

        hour_count = await self.redis.get(key_hour)
        if hour_count and int(hour_count) >= self.comments_per_hour:
            raise RateLimitExceededError("Hourly comment limit exceeded")

    async def increment_rate_limit(self, author_email: str) -> None:
        """Count one creation against both windows."""
        if not self.redis:
            return

        key_minute, key_hour = creation_rate_keys(author_email)

        pipe = self.redis.pipeline()
        pipe.incr(key_minute)
        pipe.expire(key_minute, 60)
        pipe.incr(key_hour)
        pipe.expire(key_hour, 3600)
        await pipe.execute()

    # ==========================================================================
    # Comment CRUD
    # ==========================================================================

    async def create_comment(
        self,
        lesson_id: str | UUID,
        requester: Requester | None,
        content: str | None,
    ) -> Comment:
        """Create a root comment on an existing lesson.

        Raises:
            UnauthenticatedError: No requester
            InvalidInputError: Empty content or malformed lesson id
            LessonNotFoundError: Lesson does not exist
            RateLimitExceededError: Author is creating too fast
        """
        requester = require_requester(requester)
        text = normalize_content(content, self.max_content_length, "Comment")
        lesson_uuid = tree.parse_id(lesson_id, "lesson")

        lesson = await self.lesson_service.get_lesson(lesson_uuid)
        if lesson is None:
            raise LessonNotFoundError()

        await self.check_rate_limit(requester.email)

        comment = create_comment(
            lesson_id=lesson_uuid,
            author=Author.from_requester(requester),
            content=text,
        )
        await self.repository.insert(comment)
        await self.increment_rate_limit(requester.email)

        logger.info(
            "comment_created",
            comment_id=str(comment.id),
            lesson_id=str(lesson_uuid),
            author=comment.author.email,
        )

        await self._audit(
            requester,
            action=AuditAction.CREATE,
            target_id=str(comment.id),
            target_owner_email=lesson.creator_email,
            summary=f'Commented on lesson "{lesson.title}"',
            metadata={"lessonTitle": lesson.title, "commentId": str(comment.id)},
        )
        return comment

    async def list_comments(
        self,
        lesson_id: str | UUID,
        page: int = 1,
        limit: int = 20,
        viewer: Requester | None = None,
    ) -> CommentPage:
        """Newest-first page of a lesson's threads. Public.

        ``viewer`` is the signed-in caller, if any. It only tags the log line.
        """
        lesson_uuid = tree.parse_id(lesson_id, "lesson")
        if page < 1:
            raise InvalidInputError("Page must be at least 1")
        if limit < 1:
            raise InvalidInputError("Limit must be at least 1")

        lesson = await self.lesson_service.get_lesson(lesson_uuid)
        if lesson is None:
            raise LessonNotFoundError()

        total = await self.repository.count_by_lesson(lesson_uuid)
        logger.debug(
            "comments_listed",
            lesson_id=str(lesson_uuid),
            page=page,
            total=total,
            viewer=viewer.email if viewer else None,
        )
        if (page - 1) * limit >= total:
            return CommentPage(comments=[], total=total, page=page, limit=limit)

        comments = await self.repository.list_by_lesson(lesson_uuid, page, limit)
        return CommentPage(comments=comments, total=total, page=page, limit=limit)

    async def get_comment(
        self, comment_id: str | UUID, viewer: Requester | None = None
    ) -> Comment:
        """Fetch one thread. Public."""
        comment = await self.repository.get(tree.parse_id(comment_id, "comment"))
        if comment is None:
            raise CommentNotFoundError()
        logger.debug(
            "comment_viewed",
            comment_id=str(comment.id),
            viewer=viewer.email if viewer else None,
        )
        return comment

    async def update_comment(
        self,
        comment_id: str | UUID,
        requester: Requester | None,
        content: str | None,
    ) -> Comment:
        """Edit the root comment's content. Author only."""
        return await self._edit(CommentPath.parse(comment_id), requester, content)

    async def update_reply(
        self,
        path: CommentPath,
        requester: Requester | None,
        content: str | None,
    ) -> Comment:
        """Edit a reply's content at any depth. Author only."""
        if path.is_root:
            raise InvalidInputError("Reply path required")
        return await self._edit(path, requester, content)

    async def delete_comment(
        self, comment_id: str | UUID, requester: Requester | None
    ) -> None:
        """Delete a whole thread. Author only, admins included."""
        requester = require_requester(requester)
        comment = await self.get_comment(comment_id)

        if comment.author.email != requester.email:
            raise PermissionDeniedError("Can only delete your own comments")

        if not await self.repository.delete(comment):
            raise CommentNotFoundError()
        logger.info(
            "comment_deleted",
            comment_id=str(comment.id),
            lesson_id=str(comment.lesson_id),
        )

        await self._audit(
            requester,
            action=AuditAction.DELETE,
            target_id=str(comment.id),
            target_owner_email=comment.author.email,
            summary="Deleted a comment",
            metadata={"commentId": str(comment.id)},
        )

    async def delete_reply(
        self, path: CommentPath, requester: Requester | None
    ) -> Comment:
        """Remove a reply and its subtree. Author only.

        Returns:
            The updated root comment
        """
        requester = require_requester(requester)
        if path.is_root:
            raise InvalidInputError("Reply path required")

        def mutation(comment: Comment) -> ReplyNode:
            node = tree.resolve(comment, path)
            if node.author.email != requester.email:
                raise PermissionDeniedError("Can only delete your own replies")
            return tree.detach(comment, path)

        comment, removed = await self._mutate(path.comment_id, mutation)
        logger.info(
            "reply_deleted",
            comment_id=str(comment.id),
            reply_id=str(removed.id),
            depth=path.depth,
        )
        return comment

    # ==========================================================================
    # Reactions
    # ==========================================================================

    async def toggle_reaction(
        self,
        path: CommentPath,
        requester: Requester | None,
        emoji: str | ReactionEmoji,
    ) -> Comment:
        """React or un-react on any node. Open to every authenticated user."""
        requester = require_requester(requester)
        parsed = tree.parse_emoji(emoji)

        def mutation(comment: Comment) -> bool:
            node = tree.resolve(comment, path)
            return tree.toggle_reaction(node, requester.email, parsed)

        comment, added = await self._mutate(path.comment_id, mutation)
        logger.info(
            "reaction_toggled",
            comment_id=str(comment.id),
            depth=path.depth,
            emoji=parsed.value,
            added=added,
        )
        return comment

    # ==========================================================================
    # Replies
    # ==========================================================================

    async def add_reply(
        self,
        comment_id: str | UUID,
        requester: Requester | None,
        content: str | None,
    ) -> tuple[Comment, ReplyNode]:
        """Reply to a root comment."""
        return await self._add_reply(CommentPath.parse(comment_id), requester, content)

    async def add_nested_reply(
        self,
        comment_id: str | UUID,
        reply_id: str | UUID,
        requester: Requester | None,
        content: str | None,
    ) -> tuple[Comment, ReplyNode]:
        """Reply to a first-level reply."""
        return await self._add_reply(
            CommentPath.parse(comment_id, reply_id), requester, content
        )

    async def add_deep_nested_reply(
        self,
        comment_id: str | UUID,
        reply_id: str | UUID,
        nested_reply_id: str | UUID,
        requester: Requester | None,
        content: str | None,
    ) -> tuple[Comment, ReplyNode]:
        """Reply to a nested reply. Deepest level allowed."""
        return await self._add_reply(
            CommentPath.parse(comment_id, reply_id, nested_reply_id),
            requester,
            content,
        )

    async def _add_reply(
        self,
        parent_path: CommentPath,
        requester: Requester | None,
        content: str | None,
    ) -> tuple[Comment, ReplyNode]:
        requester = require_requester(requester)
        text = normalize_content(content, self.max_content_length, "Reply")
        await self.check_rate_limit(requester.email)

        reply = create_reply(Author.from_requester(requester), text)

        def mutation(comment: Comment) -> None:
            tree.append_reply(comment, parent_path, reply)

        comment, _ = await self._mutate(parent_path.comment_id, mutation)
        await self.increment_rate_limit(requester.email)

        logger.info(
            "reply_created",
            comment_id=str(comment.id),
            reply_id=str(reply.id),
            depth=parent_path.depth + 1,
            thread_depth=tree.max_depth(comment),
        )
        return comment, reply

    # ==========================================================================
    # Internals
    # ==========================================================================

    async def _edit(
        self,
        path: CommentPath,
        requester: Requester | None,
        content: str | None,
    ) -> Comment:
        requester = require_requester(requester)
        noun = "comments" if path.is_root else "replies"
        label = "Comment" if path.is_root else "Reply"

        def mutation(comment: Comment) -> None:
            node = tree.resolve(comment, path)
            if node.author.email != requester.email:
                raise PermissionDeniedError(f"Can only edit your own {noun}")
            tree.edit_content(
                node, normalize_content(content, self.max_content_length, label)
            )

        comment, _ = await self._mutate(path.comment_id, mutation)
        logger.info("comment_updated", comment_id=str(comment.id), depth=path.depth)
        return comment

    async def _mutate(
        self, comment_id: UUID, mutation: Callable[[Comment], T]
    ) -> tuple[Comment, T]:
        """Load, mutate in memory and save conditionally, retrying on conflict.

        Errors raised by ``mutation`` abort without writing anything.

        Raises:
            CommentNotFoundError: The thread does not exist (anymore)
            ConcurrentModificationError: Every attempt lost a race
        """
        for attempt in range(1, self.max_write_retries + 1):
            comment = await self.repository.get(comment_id)
            if comment is None:
                raise CommentNotFoundError()

            loaded_version = comment.version
            result = mutation(comment)

            if await self.repository.save_if_version(comment, loaded_version):
                return comment, result

            logger.info(
                "comment_write_conflict",
                comment_id=str(comment_id),
                attempt=attempt,
            )

        logger.warning(
            "comment_write_retries_exhausted",
            comment_id=str(comment_id),
            attempts=self.max_write_retries,
        )
        raise ConcurrentModificationError()

    async def _audit(self, requester: Requester, **kwargs) -> None:
        if self.audit_service is None:
            return
        await self.audit_service.log_change(
            actor_email=requester.email,
            actor_name=requester.name,
            actor_role=requester.role.value,
            target_type=TargetType.COMMENT,
            **kwargs,
        )
