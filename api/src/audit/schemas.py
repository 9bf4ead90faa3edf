"""Pydantic schemas for audit log listings."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ChangeLogResponse(BaseModel):
    """A single audit entry."""

    id: UUID
    actor_email: str
    actor_name: str
    actor_role: str
    target_type: str
    target_id: str
    target_owner_email: str | None = None
    action: str
    summary: str
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: datetime

    @classmethod
    def from_change(cls, change: Any) -> "ChangeLogResponse":
        """Create response from ChangeLog entity."""
        return cls(
            id=change.log_id,
            actor_email=change.actor_email,
            actor_name=change.actor_name,
            actor_role=change.actor_role,
            target_type=change.target_type,
            target_id=change.target_id,
            target_owner_email=change.target_owner_email,
            action=change.action,
            summary=change.summary,
            metadata=change.metadata,
            created_at=change.created_at,
        )


class ChangeLogListResponse(BaseModel):
    """Page of audit entries."""

    page: int
    limit: int
    total: int
    changes: list[ChangeLogResponse]


class UserChangeLogListResponse(ChangeLogListResponse):
    """Page of the caller's own audit entries."""

    is_premium: bool
