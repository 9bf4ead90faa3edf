"""Seed a development keyspace with users and lessons to comment on.

Creates the schema if needed, then inserts two members, one admin and a
couple of lessons owned by the first member. Re-running overwrites the
same rows.

Usage:
    cd api && python -m scripts.seed_sample_data
"""

import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from src.auth.security import create_identity_token
from src.config.settings import get_settings
from src.core.context import RequestContext
from src.core.database import init_async_cassandra, shutdown_async_cassandra


logger = structlog.get_logger(__name__)


SAMPLE_USERS = [
    ("ana@lifecherry.dev", "Ana Souza", "user", True),
    ("ben@lifecherry.dev", "Ben Carter", "user", False),
    ("admin@lifecherry.dev", "Admin", "admin", True),
]

SAMPLE_LESSONS = [
    (
        UUID("6f1c3a52-7d0e-4c5b-9a44-2f7b1d9e0c11"),
        "Slow down before big decisions",
        "Mindset",
        "ana@lifecherry.dev",
        "Ana Souza",
    ),
    (
        UUID("0b9e4d27-31a8-4f6c-8e15-c4a2d7f3b960"),
        "Say no without apologizing",
        "Relationships",
        "ana@lifecherry.dev",
        "Ana Souza",
    ),
]


async def seed(session, keyspace: str) -> tuple[int, int]:
    """Insert sample users and lessons.

    Returns:
        Tuple of (users_written, lessons_written)
    """
    now = datetime.now(UTC)

    insert_user = session.prepare(f"""
        INSERT INTO {keyspace}.users (
            email, name, photo_url, bio, role, is_premium, status,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    """)
    insert_lesson = session.prepare(f"""
        INSERT INTO {keyspace}.lessons (
            id, title, description, category, visibility, access_level,
            creator_email, creator_name, is_archived, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """)

    for email, name, role, is_premium in SAMPLE_USERS:
        await session.aexecute(
            insert_user, [email, name, "", "", role, is_premium, "active", now, now]
        )
        logger.info("seed_user_written", email=email, role=role)

    for lesson_id, title, category, creator_email, creator_name in SAMPLE_LESSONS:
        await session.aexecute(
            insert_lesson,
            [
                lesson_id,
                title,
                "",
                category,
                "public",
                "free",
                creator_email,
                creator_name,
                False,
                now,
                now,
            ],
        )
        logger.info("seed_lesson_written", lesson_id=str(lesson_id), title=title)

    return len(SAMPLE_USERS), len(SAMPLE_LESSONS)


async def run_seed() -> None:
    """Connect, create the schema and seed it."""
    settings = get_settings()
    if settings.is_production:
        logger.error("seed_refused", environment=settings.environment)
        return

    session = await init_async_cassandra()
    try:
        with RequestContext(actor_email="seed@lifecherry.dev"):
            users, lessons = await seed(session, settings.cassandra_keyspace)
        logger.info("seed_completed", users=users, lessons=lessons)
        for email, *_ in SAMPLE_USERS:
            # Tokens for trying the API from a shell
            logger.info("seed_token", email=email, token=create_identity_token(email))
    finally:
        await shutdown_async_cassandra()


if __name__ == "__main__":
    asyncio.run(run_seed())
