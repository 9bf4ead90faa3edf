"""Tests for auth permissions."""

import pytest

from src.auth.permissions import UserRole, is_admin, parse_role
from src.auth.schemas import Requester


class TestParseRole:
    """Tests for parse_role function."""

    @pytest.mark.parametrize(
        "role,expected",
        [
            (UserRole.ADMIN, UserRole.ADMIN),
            ("admin", UserRole.ADMIN),
            ("user", UserRole.USER),
            (None, UserRole.USER),
            ("", UserRole.USER),
            ("superadmin", UserRole.USER),
        ],
    )
    def test_parse(self, role, expected: UserRole) -> None:
        assert parse_role(role) == expected


class TestIsAdmin:
    """Tests for admin checks."""

    def test_function(self) -> None:
        assert is_admin(UserRole.ADMIN) is True
        assert is_admin("user") is False
        assert is_admin(None) is False

    def test_requester_property(self) -> None:
        assert Requester(email="a@example.com", role=UserRole.ADMIN).is_admin
        assert not Requester(email="a@example.com").is_admin

    def test_requester_defaults(self) -> None:
        requester = Requester(email="a@example.com")
        assert requester.name == "User"
        assert requester.photo_url == ""
        assert requester.is_premium is False
