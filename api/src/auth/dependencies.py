"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Bearer token extraction and verification
- Requester resolution (identity claims + stored profile)
- Admin-only access
"""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from src.auth.permissions import parse_role
from src.auth.schemas import Requester
from src.auth.security import decode_identity_token
from src.core.context import set_actor_email
from src.users.models import DEFAULT_DISPLAY_NAME
from src.users.service import UserService


logger = structlog.get_logger(__name__)


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_user_service(request: Request) -> UserService | None:
    """Get the profile service from app state, if the database is up."""
    return getattr(request.app.state, "user_service", None)


async def resolve_requester(
    token: str, user_service: UserService | None
) -> Requester:
    """Verify a token and combine its identity with the stored profile.

    Raises:
        HTTPException(401): If the token is invalid or expired
    """
    try:
        claims = decode_identity_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    email = claims["email"]
    set_actor_email(email)

    profile = None
    if user_service is not None:
        profile = await user_service.get_user_by_email(email)

    if profile is None:
        return Requester(email=email, name=claims.get("name") or DEFAULT_DISPLAY_NAME)

    return Requester(
        email=email,
        name=profile.name or DEFAULT_DISPLAY_NAME,
        photo_url=profile.photo_url or "",
        role=parse_role(profile.role),
        is_premium=profile.is_premium,
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
    user_service: Annotated[UserService | None, Depends(get_user_service)],
) -> Requester:
    """Get the authenticated requester.

    Raises:
        HTTPException(401): If the token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await resolve_requester(token, user_service)


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
    user_service: Annotated[UserService | None, Depends(get_user_service)],
) -> Requester | None:
    """Get the requester if a token is present, None for anonymous callers.

    A token that is present but invalid is still rejected with 401.
    """
    if not token:
        return None
    return await resolve_requester(token, user_service)


async def require_admin(
    user: Annotated[Requester, Depends(get_current_user)],
) -> Requester:
    """Require the ADMIN role."""
    if not user.is_admin:
        logger.warning("admin_access_denied", email=user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin only",
        )
    return user


CurrentUser = Annotated[Requester, Depends(get_current_user)]
OptionalUser = Annotated[Requester | None, Depends(get_current_user_optional)]
AdminUser = Annotated[Requester, Depends(require_admin)]
