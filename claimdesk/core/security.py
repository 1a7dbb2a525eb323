"""
Caller identity - opaque actor extracted from an upstream-issued JWT
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from claimdesk.core.config import settings

ANONYMOUS_ACTOR = "anonymous"

# Optional scheme: the API is usable without a token
optional_security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token (used by tooling and tests)."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_actor(token: str) -> Optional[str]:
    """Return the ``sub`` claim of a valid token, or None."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> str:
    """
    Identify the caller for timelines and audit lines.

    Missing or invalid tokens fall back to the anonymous actor, the same way
    guest sessions are handled.
    """
    if credentials is None:
        return ANONYMOUS_ACTOR
    return decode_actor(credentials.credentials) or ANONYMOUS_ACTOR
