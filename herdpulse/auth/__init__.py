"""JWT authentication and owner resolution module."""

from herdpulse.auth.dependencies import get_current_owner_id
from herdpulse.auth.jwt import create_access_token, decode_access_token

__all__ = ["create_access_token", "decode_access_token", "get_current_owner_id"]
