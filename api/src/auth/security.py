"""Identity token verification.

Tokens are issued by the external identity provider; this service only
verifies them and reads the identity claims. ``create_identity_token`` mints
tokens with the same shape for tests and local tooling.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.config.settings import get_settings


def create_identity_token(
    email: str,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Create a signed identity token.

    Args:
        email: Identity email claim
        expires_delta: Token lifetime (default from settings)
        **claims: Extra claims (e.g. ``name``)

    Returns:
        Encoded JWT string
    """
    settings = get_settings()
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes)
    )

    payload = {**claims, "email": email, "sub": email, "iat": now, "exp": expire}
    return jwt.encode(
        payload, settings.auth_secret_key, algorithm=settings.auth_algorithm
    )


def decode_identity_token(token: str) -> dict[str, Any]:
    """Verify a token and return its claims with a normalized email.

    Validates signature and expiration, and requires an ``email`` claim.

    Raises:
        JWTError: If the token is invalid, expired or carries no email
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        msg = "Token has no email claim"
        raise JWTError(msg)

    payload["email"] = email.strip().lower()
    return payload
