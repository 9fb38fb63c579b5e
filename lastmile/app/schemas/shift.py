"""
Shift and break schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from lastmile.app.models.shift import BreakType


class BreakStartRequest(BaseModel):
    type: BreakType


class BreakResponse(BaseModel):
    id: int
    type: BreakType
    start_time: datetime
    end_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class ShiftResponse(BaseModel):
    id: int
    driver_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    breaks: List[BreakResponse] = []

    class Config:
        from_attributes = True


class ShiftStatusResponse(BaseModel):
    """GET /shifts/status."""
    is_on_duty: bool
    is_on_break: bool = False
    shift: Optional[ShiftResponse] = None
