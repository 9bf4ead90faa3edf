"""User profile lookup (read-only collaborator for identity resolution)."""

from .models import USERS_TABLES_CQL, UserProfile
from .service import UserService


__all__ = ["USERS_TABLES_CQL", "UserProfile", "UserService"]
