"""
Dispatch console schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from lastmile.app.models.enums import DriverStatus
from lastmile.app.schemas.auth import DriverInfo


class DriverCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    full_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    license_no: Optional[str] = None
    status: DriverStatus = DriverStatus.ACTIVE


class DriverUpdate(BaseModel):
    """Partial update; only provided fields change."""
    password: Optional[str] = Field(None, min_length=6)
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    photo_url: Optional[str] = None
    license_no: Optional[str] = None
    status: Optional[DriverStatus] = None


class DriverAdminResponse(DriverInfo):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DriverListResponse(BaseModel):
    drivers: List[DriverAdminResponse]
    total: int
    page: int
    page_size: int


class AuditLogResponse(BaseModel):
    id: int
    actor_id: Optional[int] = None
    actor_username: Optional[str] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    meta_data: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True
