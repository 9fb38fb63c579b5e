"""
Authentication API endpoints.

Driver login and logout for the mobile client.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from lastmile.app.db.session import get_db
from lastmile.app.models.driver import Driver
from lastmile.app.models.enums import UserRole, DriverStatus
from lastmile.app.schemas.auth import LoginRequest, LoginResponse, DriverInfo, MessageResponse
from lastmile.app.core.security import verify_password
from lastmile.app.core.jwt import create_access_token
from lastmile.app.core.dependencies import get_current_user, get_bearer_token
from lastmile.app.core.token_revocation import revoke_token
from lastmile.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Login a driver and return a JWT token with the driver profile.

    Logs successful and failed login attempts for security monitoring.
    """
    result = await db.execute(select(Driver).where(Driver.username == credentials.username))
    driver = result.scalar_one_or_none()

    if not driver or not verify_password(credentials.password, driver.hashed_password):
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=driver.id if driver else None,
            actor_username=credentials.username,
            metadata={"reason": "Invalid password" if driver else "Driver not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if driver.status != DriverStatus.ACTIVE:
        await log_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=driver.id,
            actor_username=driver.username,
            metadata={"reason": f"Account is {driver.status.value}"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Driver account is not active"
        )

    access_token = create_access_token(data={
        "sub": driver.username,
        "user_id": driver.id,
        "role": UserRole.DRIVER.value,
    })

    await log_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_id=driver.id,
        actor_username=driver.username
    )

    return LoginResponse(token=access_token, driver=DriverInfo.model_validate(driver))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_bearer_token),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the presented token."""
    await revoke_token(token, current_user.get("user_id"))

    await log_event(
        db=db,
        action=AuditAction.TOKEN_REVOKED,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        metadata={"reason": "logout"}
    )

    return MessageResponse(message="Logged out")
