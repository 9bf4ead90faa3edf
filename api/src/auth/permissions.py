"""Role-based access control for LifeCherry.

Two roles exist:
- ADMIN: moderates content and reads the global audit log
- USER: regular member

Comment and reply edits/deletes are author-only for every role; admins get
no override there.
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles."""

    USER = "user"
    ADMIN = "admin"


def parse_role(role: UserRole | str | None) -> UserRole:
    """Coerce a stored or claimed role to UserRole, defaulting to USER."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role) if role else UserRole.USER
    except ValueError:
        return UserRole.USER


def is_admin(role: UserRole | str | None) -> bool:
    """Check if role is ADMIN.

    Examples:
        >>> is_admin("admin")
        True
        >>> is_admin("superadmin")
        False
    """
    return parse_role(role) == UserRole.ADMIN
