"""In-memory operations on a comment thread.

Every function here works on a loaded Comment document and never touches
storage. Nodes are addressed with a CommentPath: the root comment id
followed by up to three reply ids, one per nesting level.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .exceptions import CommentNotFoundError, InvalidInputError
from .models import (
    MAX_REPLY_DEPTH,
    Comment,
    Reaction,
    ReactionEmoji,
    ReplyNode,
    utc_now,
)


# Indexed by depth: 0 is the root comment
LEVEL_LABELS = ("Comment", "Reply", "Nested reply", "Deep nested reply")


def parse_id(value: str | UUID, label: str = "comment") -> UUID:
    """Parse a node or lesson identifier.

    Raises:
        InvalidInputError: If the value is not a well-formed UUID
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError) as e:
        raise InvalidInputError(f"Invalid {label} id") from e


def parse_emoji(value: str | ReactionEmoji) -> ReactionEmoji:
    """Parse a reaction emoji from the closed set."""
    try:
        return ReactionEmoji(value)
    except ValueError as e:
        raise InvalidInputError("Invalid reaction emoji") from e


@dataclass(frozen=True)
class CommentPath:
    """Address of one node in a thread.

    ``reply_ids`` is empty for the root comment and holds one id per
    level below it.
    """

    comment_id: UUID
    reply_ids: tuple[UUID, ...] = ()

    def __post_init__(self) -> None:
        if len(self.reply_ids) > MAX_REPLY_DEPTH:
            raise InvalidInputError(
                f"Replies can only be nested {MAX_REPLY_DEPTH} levels deep"
            )

    @classmethod
    def parse(cls, comment_id: str | UUID, *reply_ids: str | UUID) -> "CommentPath":
        """Build a path from raw identifiers, validating each one."""
        return cls(
            comment_id=parse_id(comment_id, "comment"),
            reply_ids=tuple(parse_id(r, "reply") for r in reply_ids),
        )

    @property
    def depth(self) -> int:
        """Nesting level of the addressed node (0 for the root)."""
        return len(self.reply_ids)

    @property
    def is_root(self) -> bool:
        return not self.reply_ids

    @property
    def parent(self) -> "CommentPath":
        if self.is_root:
            raise InvalidInputError("The root comment has no parent")
        return CommentPath(self.comment_id, self.reply_ids[:-1])

    def child(self, reply_id: UUID) -> "CommentPath":
        return CommentPath(self.comment_id, (*self.reply_ids, reply_id))

    @property
    def label(self) -> str:
        """Human label of the addressed level, e.g. "Nested reply"."""
        return LEVEL_LABELS[self.depth]


# ==============================================================================
# Resolution
# ==============================================================================


def resolve(comment: Comment, path: CommentPath) -> ReplyNode:
    """Walk ``path`` from the root and return the addressed node.

    Raises:
        CommentNotFoundError: Naming the first level that is missing
    """
    if comment.id != path.comment_id:
        raise CommentNotFoundError(f"{LEVEL_LABELS[0]} not found")

    node: ReplyNode = comment
    for level, reply_id in enumerate(path.reply_ids, start=1):
        child = _find_child(node, reply_id)
        if child is None:
            raise CommentNotFoundError(f"{LEVEL_LABELS[level]} not found")
        node = child
    return node


def _find_child(node: ReplyNode, reply_id: UUID) -> ReplyNode | None:
    for child in node.replies:
        if child.id == reply_id:
            return child
    return None


def walk(comment: Comment) -> Iterator[tuple[int, ReplyNode]]:
    """Yield ``(depth, node)`` for every node, depth first, in display order."""
    stack: list[tuple[int, ReplyNode]] = [(0, comment)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(node.replies))


def max_depth(comment: Comment) -> int:
    """Deepest realized nesting level in the thread."""
    return max(depth for depth, _ in walk(comment))


# ==============================================================================
# Mutations
# ==============================================================================


def append_reply(comment: Comment, parent_path: CommentPath, reply: ReplyNode) -> None:
    """Append ``reply`` under the node at ``parent_path``.

    Raises:
        InvalidInputError: If the parent already sits at the deepest level
        CommentNotFoundError: If the parent cannot be resolved
    """
    if parent_path.depth >= MAX_REPLY_DEPTH:
        raise InvalidInputError(
            f"Replies can only be nested {MAX_REPLY_DEPTH} levels deep"
        )
    parent = resolve(comment, parent_path)
    parent.replies.append(reply)


def detach(comment: Comment, path: CommentPath) -> ReplyNode:
    """Splice the reply at ``path`` out of its parent, subtree included.

    Raises:
        InvalidInputError: If ``path`` addresses the root comment
        CommentNotFoundError: If any level cannot be resolved
    """
    parent = resolve(comment, path.parent)
    target_id = path.reply_ids[-1]
    for index, child in enumerate(parent.replies):
        if child.id == target_id:
            return parent.replies.pop(index)
    raise CommentNotFoundError(f"{path.label} not found")


def edit_content(node: ReplyNode, content: str, now: datetime | None = None) -> None:
    """Replace a node's content and refresh its ``updated_at``."""
    node.content = content
    node.updated_at = now or utc_now()


def find_reaction(node: ReplyNode, user_email: str) -> Reaction | None:
    """Return the reaction ``user_email`` left on ``node``, if any."""
    email = user_email.lower()
    for reaction in node.reactions:
        if reaction.user_email == email:
            return reaction
    return None


def toggle_reaction(node: ReplyNode, user_email: str, emoji: ReactionEmoji) -> bool:
    """Apply toggle semantics for one author's reaction on one node.

    The same emoji again removes it. A different emoji replaces the
    author's previous one, so an author never holds two reactions.

    Returns:
        True if the node now carries ``emoji`` from the author, False if removed
    """
    email = user_email.lower()
    existing = find_reaction(node, email)

    node.reactions = [r for r in node.reactions if r.user_email != email]
    if existing is not None and existing.emoji == emoji:
        return False

    node.reactions.append(Reaction(user_email=email, emoji=emoji))
    return True
