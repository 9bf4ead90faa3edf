"""Tests for CommentRepository against a mocked Cassandra session."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from src.comments.models import Author, create_comment
from src.comments.repository import CommentRepository


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(query_string=cql))
    # cassandra-asyncio-driver adds aexecute(); Session spec does not know it
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def repository(mock_session) -> CommentRepository:
    return CommentRepository(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def comment():
    return create_comment(uuid4(), Author("alice@example.com", "Alice"), "Root")


def _result(rows=None, one=None, was_applied=True):
    result = Mock()
    result.one.return_value = one
    result.was_applied = was_applied
    result.__iter__ = Mock(return_value=iter(rows or []))
    return result


def test_prepares_statements_in_keyspace(mock_session, repository) -> None:
    prepared = [c.args[0] for c in mock_session.prepare.call_args_list]
    assert prepared
    assert all("test_keyspace." in cql for cql in prepared)
    assert any("IF version = ?" in cql for cql in prepared)


@pytest.mark.asyncio
async def test_insert_writes_thread_and_index(mock_session, repository, comment):
    await repository.insert(comment)

    assert comment.version == 1
    assert mock_session.aexecute.await_count == 2
    thread_args = mock_session.aexecute.await_args_list[0].args[1]
    index_args = mock_session.aexecute.await_args_list[1].args[1]
    assert thread_args[0] == comment.id
    assert thread_args[3] == comment.to_document()
    assert thread_args[4] == 1
    assert index_args == [
        comment.lesson_id,
        comment.created_at,
        comment.id,
        "alice@example.com",
    ]


@pytest.mark.asyncio
async def test_get_returns_none_when_missing(mock_session, repository) -> None:
    mock_session.aexecute.return_value = _result(one=None)
    assert await repository.get(uuid4()) is None


@pytest.mark.asyncio
async def test_get_rebuilds_document(mock_session, repository, comment) -> None:
    row = SimpleNamespace(document=comment.to_document(), version=5)
    mock_session.aexecute.return_value = _result(one=row)

    loaded = await repository.get(comment.id)

    assert loaded.id == comment.id
    assert loaded.version == 5


@pytest.mark.asyncio
async def test_save_if_version_applied(mock_session, repository, comment) -> None:
    mock_session.aexecute.return_value = _result(was_applied=True)

    assert await repository.save_if_version(comment, 3) is True

    args = mock_session.aexecute.await_args.args[1]
    assert args[1] == 4
    assert args[3] == comment.id
    assert args[4] == 3
    assert comment.version == 4


@pytest.mark.asyncio
async def test_save_if_version_conflict(mock_session, repository, comment) -> None:
    comment.version = 3
    mock_session.aexecute.return_value = _result(was_applied=False)

    assert await repository.save_if_version(comment, 3) is False
    assert comment.version == 3


@pytest.mark.asyncio
async def test_list_by_lesson_slices_window(mock_session, repository) -> None:
    lesson_id = uuid4()
    docs = [
        create_comment(lesson_id, Author("a@example.com", "A"), f"C{i}")
        for i in range(3)
    ]
    index_rows = [SimpleNamespace(comment_id=c.id) for c in docs]
    loads = [
        _result(one=SimpleNamespace(document=c.to_document(), version=1))
        for c in docs[2:]
    ]
    mock_session.aexecute.side_effect = [_result(rows=index_rows), *loads]

    page = await repository.list_by_lesson(lesson_id, page=2, limit=2)

    window_args = mock_session.aexecute.await_args_list[0].args[1]
    assert window_args == [lesson_id, 4]
    assert [c.id for c in page] == [docs[2].id]


@pytest.mark.asyncio
async def test_count_by_lesson(mock_session, repository) -> None:
    mock_session.aexecute.return_value = _result(one=SimpleNamespace(count=7))
    assert await repository.count_by_lesson(uuid4()) == 7


@pytest.mark.asyncio
async def test_delete_removes_index_entry(mock_session, repository, comment) -> None:
    mock_session.aexecute.return_value = _result(was_applied=True)

    assert await repository.delete(comment) is True

    index_args = mock_session.aexecute.await_args_list[1].args[1]
    assert index_args == [comment.lesson_id, comment.created_at, comment.id]
