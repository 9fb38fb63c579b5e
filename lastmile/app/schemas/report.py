"""
Driver report schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from lastmile.app.models.report import ReportStatus


class ReportLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)


class ReportCreate(BaseModel):
    """
    Manual issue report or failed vehicle-inspection item.

    `photo` is base64 (optionally a data URI) and is uploaded on receipt.
    """
    issue_type: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    photo: Optional[str] = None
    location: Optional[ReportLocation] = None


class ReportResponse(BaseModel):
    id: int
    driver_id: int
    issue_type: str
    description: Optional[str] = None
    photo_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    status: ReportStatus
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
