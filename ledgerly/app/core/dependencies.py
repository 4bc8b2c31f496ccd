"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from ledgerly.app.core.exceptions import AppException, AuthenticationError
from ledgerly.app.core.jwt import decode_access_token
from ledgerly.app.core.token_revocation import is_token_revoked
from ledgerly.app.db.session import get_db
from ledgerly.app.models.user import User

# HTTP Bearer security scheme; a missing header is reported as 401 below
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Checks:
    1. A bearer token is present
    2. JWT signature and expiry are valid
    3. The token has not been revoked (logout)
    4. The user still exists and is active

    Returns:
        Decoded token payload containing "sub" and "user_id"

    Raises:
        AuthenticationError: 401 if authentication fails for any reason
    """
    if credentials is None:
        raise AuthenticationError()

    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    if await is_token_revoked(token):
        raise AuthenticationError("Token has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AppException(
            message="User account is inactive",
            error_code="ERR_AUTH_003",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    return payload


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Raw bearer token of the request, used by logout to blacklist it."""
    if credentials is None:
        raise AuthenticationError()
    return credentials.credentials
