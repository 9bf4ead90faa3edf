"""Tests for requester resolution."""

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from src.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    get_token_from_header,
    require_admin,
    resolve_requester,
)
from src.auth.permissions import UserRole
from src.auth.schemas import Requester
from src.auth.security import create_identity_token
from src.users.models import UserProfile


def _request(authorization: str | None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "headers": headers})


@pytest.mark.parametrize(
    "header,expected",
    [
        ("Bearer abc", "abc"),
        ("bearer abc", "abc"),
        ("Basic abc", None),
        ("Bearer", None),
        ("Bearer a b", None),
        (None, None),
    ],
)
def test_get_token_from_header(header, expected) -> None:
    assert get_token_from_header(_request(header)) == expected


@pytest.mark.asyncio
async def test_resolve_without_profile_uses_claims() -> None:
    token = create_identity_token("New@Example.com", name="Newcomer")

    requester = await resolve_requester(token, user_service=None)

    assert requester.email == "new@example.com"
    assert requester.name == "Newcomer"
    assert requester.role == UserRole.USER


@pytest.mark.asyncio
async def test_resolve_without_profile_or_name() -> None:
    token = create_identity_token("new@example.com")
    user_service = AsyncMock()
    user_service.get_user_by_email.return_value = None

    requester = await resolve_requester(token, user_service)

    assert requester.name == "User"
    user_service.get_user_by_email.assert_awaited_once_with("new@example.com")


@pytest.mark.asyncio
async def test_resolve_prefers_stored_profile() -> None:
    token = create_identity_token("admin@example.com", name="Token Name")
    user_service = AsyncMock()
    user_service.get_user_by_email.return_value = UserProfile(
        email="admin@example.com",
        name="Stored Admin",
        photo_url="https://img/admin.png",
        role=UserRole.ADMIN,
        is_premium=True,
    )

    requester = await resolve_requester(token, user_service)

    assert requester.name == "Stored Admin"
    assert requester.photo_url == "https://img/admin.png"
    assert requester.is_admin
    assert requester.is_premium


@pytest.mark.asyncio
async def test_resolve_rejects_invalid_token() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await resolve_requester("garbage", user_service=None)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_current_user_requires_token() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=None, user_service=None)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Login required"


@pytest.mark.asyncio
async def test_optional_user_anonymous() -> None:
    assert await get_current_user_optional(token=None, user_service=None) is None


@pytest.mark.asyncio
async def test_require_admin() -> None:
    admin = Requester(email="admin@example.com", role=UserRole.ADMIN)
    assert await require_admin(admin) is admin

    with pytest.raises(HTTPException) as exc_info:
        await require_admin(Requester(email="alice@example.com"))
    assert exc_info.value.status_code == 403
