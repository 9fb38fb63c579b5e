"""
Authentication Pydantic schemas.

Defines request and response schemas for driver and dispatch login.
"""

from pydantic import BaseModel, Field
from typing import Optional
from lastmile.app.models.enums import DriverStatus, UserRole


class LoginRequest(BaseModel):
    """
    Schema for login.

    Used by POST /auth/login and POST /admin/login.
    """
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Password")


class DriverInfo(BaseModel):
    """Driver fields safe to hand to the client."""
    id: int
    username: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    photo_url: Optional[str] = None
    license_no: Optional[str] = None
    status: DriverStatus

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    """
    Schema for driver login response.

    The client stores `token` and `driver` for offline start-up.
    """
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    driver: DriverInfo


class AdminLoginResponse(BaseModel):
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    role: UserRole = UserRole.ADMIN


class MessageResponse(BaseModel):
    message: str
