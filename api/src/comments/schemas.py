"""Pydantic schemas for comment threads.

Request bodies only check shape. Content trimming, emptiness and the emoji
set are checked by the service so that every entry point reports them the
same way (400 with a specific message).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Author, Comment, Reaction, ReplyNode


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    content: str = Field(..., max_length=20000)


class UpdateCommentRequest(BaseModel):
    """Request to edit a comment or a reply."""

    content: str = Field(..., max_length=20000)


class ReactionRequest(BaseModel):
    """Request to toggle a reaction."""

    emoji: str = Field(..., max_length=16, examples=["👍"])


# ==============================================================================
# Response Schemas
# ==============================================================================


class AuthorResponse(BaseModel):
    email: str
    name: str
    photo_url: str = ""

    @classmethod
    def from_author(cls, author: Author) -> "AuthorResponse":
        return cls(email=author.email, name=author.name, photo_url=author.photo_url)


class ReactionResponse(BaseModel):
    user_email: str
    emoji: str
    created_at: datetime

    @classmethod
    def from_reaction(cls, reaction: Reaction) -> "ReactionResponse":
        return cls(
            user_email=reaction.user_email,
            emoji=reaction.emoji.value,
            created_at=reaction.created_at,
        )


class ReplyResponse(BaseModel):
    """A reply with its own subtree."""

    id: UUID
    author: AuthorResponse
    content: str
    reactions: list[ReactionResponse] = Field(default_factory=list)
    replies: list["ReplyResponse"] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_node(cls, node: ReplyNode) -> "ReplyResponse":
        """Create response from a reply node, recursively."""
        return cls(
            id=node.id,
            author=AuthorResponse.from_author(node.author),
            content=node.content,
            reactions=[ReactionResponse.from_reaction(r) for r in node.reactions],
            replies=[ReplyResponse.from_node(r) for r in node.replies],
            created_at=node.created_at,
            updated_at=node.updated_at,
        )


class CommentResponse(ReplyResponse):
    """A whole thread: root comment plus every reply under it."""

    lesson_id: UUID

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            id=comment.id,
            lesson_id=comment.lesson_id,
            author=AuthorResponse.from_author(comment.author),
            content=comment.content,
            reactions=[ReactionResponse.from_reaction(r) for r in comment.reactions],
            replies=[ReplyResponse.from_node(r) for r in comment.replies],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentListResponse(BaseModel):
    """Page of threads for a lesson."""

    comments: list[CommentResponse]
    total: int
    page: int
    limit: int
    pages: int


class ReplyCreatedResponse(BaseModel):
    """Updated thread plus the id of the reply just added."""

    comment: CommentResponse
    reply_id: UUID


class ReplyDeletedResponse(BaseModel):
    message: str = "Reply deleted"
    comment: CommentResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


ReplyResponse.model_rebuild()
