"""Pydantic schemas for the authenticated requester."""

from pydantic import BaseModel

from src.auth.permissions import UserRole, is_admin


class Requester(BaseModel):
    """Resolved identity of the caller.

    ``email`` is always lowercased; it is the durable author key for
    comments, replies, reactions and audit records.
    """

    email: str
    name: str = "User"
    photo_url: str = ""
    role: UserRole = UserRole.USER
    is_premium: bool = False

    @property
    def is_admin(self) -> bool:
        """Whether the requester holds the admin role."""
        return is_admin(self.role)
