"""Audit log API endpoints.

- Admin listing of every change
- Per-user listing (actor or owner), capped for non-premium members
"""

from fastapi import APIRouter, Query

from src.auth.dependencies import AdminUser, CurrentUser
from src.config import get_settings

from .dependencies import AuditServiceDep
from .models import TargetType
from .schemas import (
    ChangeLogListResponse,
    ChangeLogResponse,
    UserChangeLogListResponse,
)


router = APIRouter(prefix="/v1/audit", tags=["audit"])

# Keeps page * limit inside the driver's int32 LIMIT bind.
MAX_PAGE = 100_000


@router.get(
    "/admin",
    response_model=ChangeLogListResponse,
    summary="List all changes",
)
async def list_admin_changes(
    audit_service: AuditServiceDep,
    _user: AdminUser,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=50, ge=1),
    target_type: TargetType | None = None,
    actor_role: str | None = None,
) -> ChangeLogListResponse:
    """Get every recorded change, newest first. Requires ADMIN role."""
    limit = min(limit, get_settings().audit_page_size_max)

    total, changes = await audit_service.list_admin_changes(
        page=page, limit=limit, target_type=target_type, actor_role=actor_role
    )
    return ChangeLogListResponse(
        page=page,
        limit=limit,
        total=total,
        changes=[ChangeLogResponse.from_change(c) for c in changes],
    )


@router.get(
    "/user",
    response_model=UserChangeLogListResponse,
    summary="List my changes",
)
async def list_user_changes(
    audit_service: AuditServiceDep,
    user: CurrentUser,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=50, ge=1),
    target_type: TargetType | None = None,
) -> UserChangeLogListResponse:
    """Get changes made by or affecting the caller.

    Members without premium (and who are not admins) only see the first
    page, capped at ``audit_free_page_limit`` entries.
    """
    settings = get_settings()
    is_premium = user.is_premium or user.is_admin
    limit = min(limit, settings.audit_page_size_max)

    if not is_premium:
        if page > 1:
            return UserChangeLogListResponse(
                page=page, limit=limit, total=0, changes=[], is_premium=False
            )
        limit = min(limit, settings.audit_free_page_limit)

    total, changes = await audit_service.list_user_changes(
        email=user.email, page=page, limit=limit, target_type=target_type
    )
    return UserChangeLogListResponse(
        page=page,
        limit=limit,
        total=total,
        changes=[ChangeLogResponse.from_change(c) for c in changes],
        is_premium=is_premium,
    )
