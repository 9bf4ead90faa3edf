"""User profile lookups backed by Cassandra."""

from typing import TYPE_CHECKING

import structlog

from .models import UserProfile


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class UserService:
    """Read-only access to user profiles."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._get_user_by_email = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE email = ?"
        )

    async def get_user_by_email(self, email: str) -> UserProfile | None:
        """Get a profile by email (case-insensitive)."""
        result = await self.session.aexecute(self._get_user_by_email, [email.lower()])
        row = result.one()
        if row is None:
            logger.debug("user_profile_missing", email=email.lower())
            return None
        return UserProfile.from_row(row)
