"""
Caller authentication for the HTTP surface.

The caller identity is an opaque string carried in the ``sub`` claim of a
signed JWT. Services never look it up from global state: the API resolves it
once per request and passes it explicitly to every procedure.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import APIKeyHeader

from app.core.config import get_settings
from app.core.exceptions import Unauthenticated

settings = get_settings()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    identity: str,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT for an identity. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": identity,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

async def get_caller_identity(
    authorization: Optional[str] = Depends(api_key_header),
) -> str:
    """Resolve the calling identity from a Bearer token."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("Authentication required")

    token = authorization[7:].strip()
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid or expired session")

    identity = payload.get("sub")
    if not identity:
        raise Unauthenticated("Token carries no identity")
    return identity
