"""
FastAPI dependencies for authentication.
"""

from typing import Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from herdpulse.auth.jwt import decode_access_token
from herdpulse.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_owner_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """
    Extract and validate the herd owner id from a JWT token.

    Args:
        credentials: HTTP Bearer token credentials

    Returns:
        Owner id (integer user id)

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        logger.warning("auth_failed", reason="missing_token")
        raise _unauthorized("Missing authentication token")

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("auth_failed", reason="invalid_token", error=str(e))
        raise _unauthorized(f"Invalid authentication token: {str(e)}")

    subject = payload.get("sub")
    try:
        owner_id = int(subject)
    except (TypeError, ValueError):
        logger.warning("auth_failed", reason="invalid_subject")
        raise _unauthorized("Invalid token payload")

    # Every later log line of this request carries the herd owner
    structlog.contextvars.bind_contextvars(owner_id=owner_id)
    logger.debug("auth_success", owner_id=owner_id)
    return owner_id
