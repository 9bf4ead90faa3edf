"""Lesson comment threads with nested replies and reactions.

Note: Router is not exported here to avoid circular imports.
Import directly from src.comments.router when needed.
"""

from .exceptions import (
    CommentError,
    CommentNotFoundError,
    ConcurrentModificationError,
    InvalidInputError,
    LessonNotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    UnauthenticatedError,
)
from .models import (
    COMMENTS_TABLES_CQL,
    MAX_REPLY_DEPTH,
    Author,
    Comment,
    Reaction,
    ReactionEmoji,
    ReplyNode,
)
from .repository import CommentRepository
from .service import CommentPage, CommentService
from .tree import CommentPath


__all__ = [
    "COMMENTS_TABLES_CQL",
    "MAX_REPLY_DEPTH",
    "Author",
    "Comment",
    "CommentError",
    "CommentNotFoundError",
    "CommentPage",
    "CommentPath",
    "CommentRepository",
    "CommentService",
    "ConcurrentModificationError",
    "InvalidInputError",
    "LessonNotFoundError",
    "PermissionDeniedError",
    "RateLimitExceededError",
    "Reaction",
    "ReactionEmoji",
    "ReplyNode",
    "UnauthenticatedError",
]
