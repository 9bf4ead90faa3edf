"""Database models for the lesson comment threads.

A Comment is stored as one document: the root comment plus its whole reply
tree (reply -> nested reply -> deep nested reply, three levels at most) and
the reactions on every node. The tree is owned by the root, so removing a
node removes its subtree with it.

Cassandra tables:
- comments: one row per thread, the JSON document plus a version counter
  used for conditional (lightweight transaction) writes
- comments_by_lesson: newest-first index of thread ids per lesson
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import orjson

from src.auth.schemas import Requester


# Reply levels below the root comment
MAX_REPLY_DEPTH = 3


class ReactionEmoji(str, Enum):
    """The closed set of reactions."""

    THUMBS_UP = "👍"
    HEART = "❤️"
    LAUGH = "😂"
    WOW = "😮"
    SAD = "😢"
    ANGRY = "😡"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    lesson_id UUID,
    author_email TEXT,
    document TEXT,
    version INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Partition by lesson, newest first, for paginated listing and counts
COMMENTS_BY_LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_lesson (
    lesson_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    author_email TEXT,
    PRIMARY KEY ((lesson_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_LESSON_TABLE_CQL,
]


def utc_now() -> datetime:
    """Current UTC time truncated to Cassandra's millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return utc_now()
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Author:
    """Author identity snapshotted when a node is created.

    Not refreshed when the profile changes later.
    """

    email: str
    name: str
    photo_url: str = ""

    @classmethod
    def from_requester(cls, requester: Requester) -> "Author":
        """Snapshot the requester's current display identity."""
        return cls(
            email=requester.email.lower(),
            name=requester.name,
            photo_url=requester.photo_url or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"email": self.email, "name": self.name, "photo_url": self.photo_url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Author":
        """Create Author from a stored document fragment."""
        return cls(
            email=data["email"],
            name=data.get("name") or "User",
            photo_url=data.get("photo_url") or "",
        )


@dataclass
class Reaction:
    """One author's reaction on one node."""

    user_email: str
    emoji: ReactionEmoji
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_email": self.user_email,
            "emoji": self.emoji.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reaction":
        """Create Reaction from a stored document fragment."""
        return cls(
            user_email=data["user_email"],
            emoji=ReactionEmoji(data["emoji"]),
            created_at=_parse_timestamp(data.get("created_at")),
        )


@dataclass
class ReplyNode:
    """A node of the thread: the shape shared by the root and every reply."""

    id: UUID
    author: Author
    content: str
    reactions: list[Reaction] = field(default_factory=list)
    replies: list["ReplyNode"] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert the node and its subtree to a dictionary."""
        return {
            "id": str(self.id),
            "author": self.author.to_dict(),
            "content": self.content,
            "reactions": [r.to_dict() for r in self.reactions],
            "replies": [r.to_dict() for r in self.replies],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReplyNode":
        """Rebuild a reply subtree from a stored document fragment."""
        return cls(
            id=UUID(data["id"]),
            author=Author.from_dict(data["author"]),
            content=data["content"],
            reactions=[Reaction.from_dict(r) for r in data.get("reactions", [])],
            replies=[ReplyNode.from_dict(r) for r in data.get("replies", [])],
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )


@dataclass(kw_only=True)
class Comment(ReplyNode):
    """Root of a thread, attached to a lesson.

    ``version`` is storage metadata (not part of the document) used to
    detect concurrent writers.
    """

    lesson_id: UUID
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert the whole thread to a dictionary."""
        return {"lesson_id": str(self.lesson_id), **super().to_dict()}

    def to_document(self) -> str:
        """Serialize the thread for the ``document`` column."""
        return orjson.dumps(self.to_dict()).decode()

    @classmethod
    def from_document(cls, document: str | bytes, version: int = 0) -> "Comment":
        """Rebuild a thread from the ``document`` column."""
        data = orjson.loads(document)
        return cls(
            id=UUID(data["id"]),
            lesson_id=UUID(data["lesson_id"]),
            author=Author.from_dict(data["author"]),
            content=data["content"],
            reactions=[Reaction.from_dict(r) for r in data.get("reactions", [])],
            replies=[ReplyNode.from_dict(r) for r in data.get("replies", [])],
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
            version=version,
        )

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls.from_document(row.document, version=row.version or 0)


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_comment(lesson_id: UUID, author: Author, content: str) -> Comment:
    """Create a new root comment with no reactions and no replies."""
    now = utc_now()
    return Comment(
        id=uuid4(),
        lesson_id=lesson_id,
        author=author,
        content=content,
        created_at=now,
        updated_at=now,
    )


def create_reply(author: Author, content: str) -> ReplyNode:
    """Create a new reply node with no reactions and no replies."""
    now = utc_now()
    return ReplyNode(
        id=uuid4(),
        author=author,
        content=content,
        created_at=now,
        updated_at=now,
    )
