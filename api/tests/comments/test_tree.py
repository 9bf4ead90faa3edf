"""Tests for in-memory thread operations."""

from uuid import uuid4

import pytest

from src.comments.exceptions import CommentNotFoundError, InvalidInputError
from src.comments.models import (
    MAX_REPLY_DEPTH,
    Author,
    Comment,
    ReactionEmoji,
    create_comment,
    create_reply,
)
from src.comments.tree import (
    CommentPath,
    append_reply,
    detach,
    edit_content,
    find_reaction,
    max_depth,
    parse_emoji,
    parse_id,
    resolve,
    toggle_reaction,
    walk,
)


ALICE = Author(email="alice@example.com", name="Alice")
BOB = Author(email="bob@example.com", name="Bob")


@pytest.fixture
def thread() -> tuple[Comment, list[CommentPath]]:
    """Comment C with reply R1 -> nested N1 -> deep D1, plus a sibling R2.

    Returns the comment and the paths [C, R1, N1, D1, R2].
    """
    comment = create_comment(uuid4(), ALICE, "Great read!")
    root = CommentPath(comment.id)

    r1 = create_reply(BOB, "Thanks!")
    append_reply(comment, root, r1)
    r1_path = root.child(r1.id)

    n1 = create_reply(ALICE, "Agreed")
    append_reply(comment, r1_path, n1)
    n1_path = r1_path.child(n1.id)

    d1 = create_reply(BOB, "Same here")
    append_reply(comment, n1_path, d1)
    d1_path = n1_path.child(d1.id)

    r2 = create_reply(ALICE, "Second thought")
    append_reply(comment, root, r2)

    return comment, [root, r1_path, n1_path, d1_path, root.child(r2.id)]


class TestCommentPath:
    """Tests for path construction."""

    def test_parse_valid_ids(self) -> None:
        c, r = uuid4(), uuid4()
        path = CommentPath.parse(str(c), str(r))
        assert path.comment_id == c
        assert path.reply_ids == (r,)
        assert path.depth == 1
        assert path.label == "Reply"

    def test_parse_malformed_comment_id(self) -> None:
        with pytest.raises(InvalidInputError, match="Invalid comment id"):
            CommentPath.parse("not-a-uuid")

    def test_parse_malformed_reply_id(self) -> None:
        with pytest.raises(InvalidInputError, match="Invalid reply id"):
            CommentPath.parse(str(uuid4()), "bogus")

    def test_path_longer_than_depth_cap_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            CommentPath(uuid4(), tuple(uuid4() for _ in range(MAX_REPLY_DEPTH + 1)))

    def test_parent_of_root_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            _ = CommentPath(uuid4()).parent

    def test_parent_and_child(self) -> None:
        root = CommentPath(uuid4())
        reply_id = uuid4()
        assert root.child(reply_id).parent == root

    def test_parse_id_accepts_uuid(self) -> None:
        value = uuid4()
        assert parse_id(value) is value

    def test_parse_id_label_in_message(self) -> None:
        with pytest.raises(InvalidInputError, match="Invalid lesson id"):
            parse_id("xyz", "lesson")


class TestResolve:
    """Tests for path resolution."""

    def test_resolves_every_level(self, thread) -> None:
        comment, paths = thread
        assert resolve(comment, paths[0]) is comment
        assert resolve(comment, paths[1]).content == "Thanks!"
        assert resolve(comment, paths[2]).content == "Agreed"
        assert resolve(comment, paths[3]).content == "Same here"

    def test_wrong_root(self, thread) -> None:
        comment, _ = thread
        with pytest.raises(CommentNotFoundError, match="^Comment not found$"):
            resolve(comment, CommentPath(uuid4()))

    @pytest.mark.parametrize(
        ("depth", "message"),
        [
            (0, "Reply not found"),
            (1, "Nested reply not found"),
            (2, "Deep nested reply not found"),
        ],
    )
    def test_missing_level_is_named(self, thread, depth: int, message: str) -> None:
        comment, paths = thread
        with pytest.raises(CommentNotFoundError, match=f"^{message}$"):
            resolve(comment, paths[depth].child(uuid4()))


class TestAppendReply:
    """Tests for reply creation and the depth cap."""

    def test_appends_in_order(self, thread) -> None:
        comment, _ = thread
        assert [r.content for r in comment.replies] == ["Thanks!", "Second thought"]

    def test_new_reply_is_empty(self) -> None:
        reply = create_reply(ALICE, "Hi")
        assert reply.reactions == []
        assert reply.replies == []

    def test_rejects_depth_four(self, thread) -> None:
        comment, paths = thread
        with pytest.raises(InvalidInputError):
            append_reply(comment, paths[3], create_reply(ALICE, "Too deep"))
        assert resolve(comment, paths[3]).replies == []
        assert max_depth(comment) == MAX_REPLY_DEPTH

    def test_missing_parent(self, thread) -> None:
        comment, paths = thread
        with pytest.raises(CommentNotFoundError, match="Reply not found"):
            append_reply(comment, paths[0].child(uuid4()), create_reply(BOB, "?"))


class TestDetach:
    """Tests for splicing replies out of the tree."""

    def test_removes_subtree(self, thread) -> None:
        comment, paths = thread
        removed = detach(comment, paths[1])

        assert removed.content == "Thanks!"
        assert [r.content for r in comment.replies] == ["Second thought"]
        with pytest.raises(CommentNotFoundError, match="^Reply not found$"):
            resolve(comment, paths[2])
        assert all(node.content != "Agreed" for _, node in walk(comment))

    def test_removes_deepest_only(self, thread) -> None:
        comment, paths = thread
        detach(comment, paths[3])
        assert resolve(comment, paths[2]).replies == []
        assert max_depth(comment) == 2

    def test_level_specific_not_found(self, thread) -> None:
        comment, paths = thread
        with pytest.raises(CommentNotFoundError, match="^Reply not found$"):
            detach(comment, paths[0].child(uuid4()))
        with pytest.raises(CommentNotFoundError, match="^Nested reply not found$"):
            detach(comment, paths[1].child(uuid4()))

    def test_root_cannot_be_detached(self, thread) -> None:
        comment, paths = thread
        with pytest.raises(InvalidInputError):
            detach(comment, paths[0])


class TestToggleReaction:
    """Tests for toggle semantics."""

    def test_same_emoji_twice_removes(self, thread) -> None:
        comment, paths = thread
        node = resolve(comment, paths[1])

        assert toggle_reaction(node, "x@example.com", ReactionEmoji.THUMBS_UP) is True
        assert len(node.reactions) == 1
        assert toggle_reaction(node, "x@example.com", ReactionEmoji.THUMBS_UP) is False
        assert node.reactions == []

    def test_different_emoji_replaces(self, thread) -> None:
        comment, _ = thread
        toggle_reaction(comment, "x@example.com", ReactionEmoji.THUMBS_UP)
        toggle_reaction(comment, "x@example.com", ReactionEmoji.HEART)

        assert len(comment.reactions) == 1
        assert comment.reactions[0].emoji == ReactionEmoji.HEART

    def test_authors_are_independent(self, thread) -> None:
        comment, paths = thread
        node = resolve(comment, paths[3])
        toggle_reaction(node, "x@example.com", ReactionEmoji.LAUGH)
        toggle_reaction(node, "y@example.com", ReactionEmoji.LAUGH)
        toggle_reaction(node, "x@example.com", ReactionEmoji.LAUGH)

        assert [r.user_email for r in node.reactions] == ["y@example.com"]

    def test_email_is_case_insensitive(self, thread) -> None:
        comment, _ = thread
        toggle_reaction(comment, "X@Example.com", ReactionEmoji.WOW)
        assert find_reaction(comment, "x@example.com") is not None
        toggle_reaction(comment, "x@example.com", ReactionEmoji.WOW)
        assert comment.reactions == []

    def test_parse_emoji(self) -> None:
        assert parse_emoji("😢") is ReactionEmoji.SAD
        with pytest.raises(InvalidInputError, match="Invalid reaction emoji"):
            parse_emoji("🍒")


class TestEditAndWalk:
    """Tests for content edits and traversal."""

    def test_edit_bumps_updated_at(self, thread) -> None:
        comment, paths = thread
        node = resolve(comment, paths[2])
        before = node.updated_at
        edit_content(node, "Edited")
        assert node.content == "Edited"
        assert node.updated_at >= before
        assert node.created_at <= node.updated_at

    def test_walk_is_display_order(self, thread) -> None:
        comment, _ = thread
        assert [(d, n.content) for d, n in walk(comment)] == [
            (0, "Great read!"),
            (1, "Thanks!"),
            (2, "Agreed"),
            (3, "Same here"),
            (1, "Second thought"),
        ]
