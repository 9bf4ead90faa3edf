"""Shared fixtures.

Storage is replaced by in-memory doubles that keep the same contracts as
the Cassandra-backed classes: comment documents are stored serialized with
a version, so every load returns fresh objects and stale writes are refused.
"""

import os
import tempfile


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="lifecherry-logs-"))
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key-not-for-production")

from collections.abc import Callable  # noqa: E402
from datetime import UTC, datetime  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.audit import AuditService  # noqa: E402
from src.auth.permissions import UserRole  # noqa: E402
from src.auth.schemas import Requester  # noqa: E402
from src.auth.security import create_identity_token  # noqa: E402
from src.comments.models import Comment  # noqa: E402
from src.comments.service import CommentService  # noqa: E402
from src.lessons.models import Lesson  # noqa: E402
from src.main import create_app  # noqa: E402
from src.users.models import UserProfile  # noqa: E402


# ==============================================================================
# In-memory doubles
# ==============================================================================


class InMemoryCommentRepository:
    """CommentRepository double with conditional-write semantics."""

    def __init__(self) -> None:
        self.rows: dict[UUID, tuple[str, int]] = {}
        self.lesson_index: list[tuple[UUID, datetime, UUID]] = []
        self.save_attempts = 0
        # Number of upcoming saves that lose a race to a simulated writer
        self.conflicts_to_inject = 0

    async def get(self, comment_id: UUID) -> Comment | None:
        row = self.rows.get(comment_id)
        if row is None:
            return None
        document, version = row
        return Comment.from_document(document, version=version)

    async def insert(self, comment: Comment) -> Comment:
        comment.version = 1
        self.rows[comment.id] = (comment.to_document(), 1)
        self.lesson_index.append((comment.lesson_id, comment.created_at, comment.id))
        return comment

    async def save_if_version(self, comment: Comment, expected_version: int) -> bool:
        self.save_attempts += 1
        stored = self.rows.get(comment.id)
        if stored is None:
            return False

        if self.conflicts_to_inject:
            self.conflicts_to_inject -= 1
            document, version = stored
            self.rows[comment.id] = (document, version + 1)
            return False

        if stored[1] != expected_version:
            return False

        comment.version = expected_version + 1
        self.rows[comment.id] = (comment.to_document(), comment.version)
        return True

    async def delete(self, comment: Comment) -> bool:
        existed = self.rows.pop(comment.id, None) is not None
        self.lesson_index = [e for e in self.lesson_index if e[2] != comment.id]
        return existed

    def _ids_newest_first(self, lesson_id: UUID) -> list[UUID]:
        entries = [
            (created_at, position, comment_id)
            for position, (lid, created_at, comment_id) in enumerate(self.lesson_index)
            if lid == lesson_id
        ]
        entries.sort(reverse=True)
        return [comment_id for _, _, comment_id in entries]

    async def list_by_lesson(
        self, lesson_id: UUID, page: int, limit: int
    ) -> list[Comment]:
        start = (page - 1) * limit
        ids = self._ids_newest_first(lesson_id)[start : start + limit]
        comments = [await self.get(i) for i in ids]
        return [c for c in comments if c is not None]

    async def count_by_lesson(self, lesson_id: UUID) -> int:
        return len(self._ids_newest_first(lesson_id))


class FakeLessonService:
    """LessonService double backed by a dict."""

    def __init__(self, *lessons: Lesson) -> None:
        self.lessons = {lesson.id: lesson for lesson in lessons}

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        return self.lessons.get(lesson_id)


class FakeUserService:
    """UserService double backed by a dict."""

    def __init__(self, *profiles: UserProfile) -> None:
        self.profiles = {p.email: p for p in profiles}

    async def get_user_by_email(self, email: str) -> UserProfile | None:
        return self.profiles.get(email.lower())


# ==============================================================================
# Identities
# ==============================================================================

ALICE = "alice@example.com"
BOB = "bob@example.com"
ADMIN = "admin@example.com"


@pytest.fixture
def alice() -> Requester:
    return Requester(email=ALICE, name="Alice", photo_url="https://img/alice.png")


@pytest.fixture
def bob() -> Requester:
    return Requester(email=BOB, name="Bob")


@pytest.fixture
def admin() -> Requester:
    return Requester(email=ADMIN, name="Admin", role=UserRole.ADMIN, is_premium=True)


@pytest.fixture
def profiles() -> list[UserProfile]:
    return [
        UserProfile(
            email=ALICE,
            name="Alice",
            photo_url="https://img/alice.png",
            role=UserRole.USER,
            is_premium=False,
        ),
        UserProfile(
            email=BOB, name="Bob", photo_url=None, role=UserRole.USER, is_premium=True
        ),
        UserProfile(
            email=ADMIN,
            name="Admin",
            photo_url=None,
            role=UserRole.ADMIN,
            is_premium=False,
        ),
    ]


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for an email."""

    def _headers(email: str, **claims) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_identity_token(email, **claims)}"}

    return _headers


# ==============================================================================
# Services
# ==============================================================================


@pytest.fixture
def lesson() -> Lesson:
    return Lesson(
        id=uuid4(),
        title="Slow down before big decisions",
        creator_email="creator@example.com",
        creator_name="Creator",
        created_at=datetime.now(UTC),
    )


@pytest.fixture
def lesson_service(lesson: Lesson) -> FakeLessonService:
    return FakeLessonService(lesson)


@pytest.fixture
def comment_repository() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def audit_service() -> AsyncMock:
    service = AsyncMock(spec=AuditService)
    service.log_change.return_value = None
    return service


@pytest.fixture
def comment_service(
    comment_repository: InMemoryCommentRepository,
    lesson_service: FakeLessonService,
    audit_service: AsyncMock,
) -> CommentService:
    return CommentService(
        repository=comment_repository,
        lesson_service=lesson_service,
        audit_service=audit_service,
        max_write_retries=3,
    )


# ==============================================================================
# Application
# ==============================================================================


@pytest.fixture
def app(
    comment_service: CommentService,
    audit_service: AsyncMock,
    lesson_service: FakeLessonService,
    profiles: list[UserProfile],
) -> FastAPI:
    """Fresh application with doubles on ``app.state`` (lifespan not run)."""
    application = create_app()
    application.state.user_service = FakeUserService(*profiles)
    application.state.lesson_service = lesson_service
    application.state.audit_service = audit_service
    application.state.comment_service = comment_service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def bare_client() -> TestClient:
    """Application without any services, as when the database is down."""
    return TestClient(create_app())
