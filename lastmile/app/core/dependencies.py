"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from lastmile.app.core.jwt import decode_access_token
from lastmile.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from lastmile.app.db.session import get_db
from lastmile.app.models.driver import Driver
from lastmile.app.models.enums import UserRole, DriverStatus

# HTTP Bearer security scheme; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the raw bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("No token provided")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature and expiry
    2. Checks if token has been explicitly revoked (logout)
    3. Checks if all driver tokens have been revoked (deactivated by dispatch)
    4. Verifies the driver still exists and is ACTIVE (real-time check)

    Admin tokens carry no driver row and skip checks 3 and 4.

    Returns:
        Decoded token payload containing user information

    Raises:
        HTTPException: 401 if authentication fails, 403 if the driver is inactive
    """
    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid token")

    role = payload.get("role")
    if role not in (UserRole.ADMIN.value, UserRole.DRIVER.value):
        raise _unauthorized("Invalid token payload")

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise _unauthorized("Token has been revoked")

    if role == UserRole.ADMIN.value:
        return payload

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    # 3. Check if all driver tokens have been revoked
    if await are_user_tokens_revoked(user_id):
        raise _unauthorized("Driver access has been revoked")

    # 4. Real-time database check
    result = await db.execute(select(Driver).where(Driver.id == user_id))
    driver = result.scalar_one_or_none()

    if not driver:
        raise _unauthorized("Driver not found")

    if driver.status != DriverStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Driver account is not active",
        )

    return payload
