"""
JWT token creation and validation.
Uses python-jose for JWT handling. The ``sub`` claim carries the herd owner's id.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from herdpulse.config import get_settings


def create_access_token(
    owner_id: int,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a JWT access token for a herd owner.

    Args:
        owner_id: Owner (user) id stored in the ``sub`` claim
        expires_delta: Optional custom expiration time
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expiration_minutes))

    to_encode: Dict[str, Any] = dict(extra_claims or {})
    to_encode.update(
        {
            "sub": str(owner_id),
            "exp": expire,
            "iat": now,
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload

    Raises:
        JWTError: If token is invalid or expired
    """
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise JWTError(f"Token validation failed: {str(e)}")

    if payload.get("type") != "access":
        raise JWTError("Token validation failed: invalid token type")

    return payload
