"""
Route schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime, date as date_type
from typing import List, Optional
from lastmile.app.models.route_enums import RouteStatus
from lastmile.app.schemas.delivery import DeliveryResponse, DeliveryCreate


class RouteResponse(BaseModel):
    """Route with its stops in order."""
    id: str
    date: date_type
    zone: Optional[str] = None
    vehicle_info: Optional[str] = None
    driver_id: Optional[int] = None
    status: RouteStatus
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    deliveries: List[DeliveryResponse] = []

    class Config:
        from_attributes = True


class RouteSummary(BaseModel):
    """Route list entry."""
    id: str
    date: date_type
    zone: Optional[str] = None
    vehicle_info: Optional[str] = None
    driver_id: Optional[int] = None
    status: RouteStatus
    delivery_count: int = 0
    completed_count: int = 0


class RouteStatusUpdate(BaseModel):
    status: RouteStatus


class RouteCreate(BaseModel):
    """Dispatch creates a route together with its stops."""
    id: str = Field(..., min_length=1, max_length=50, description="Dispatcher-assigned route ID")
    date: date_type
    zone: Optional[str] = None
    vehicle_info: Optional[str] = None
    driver_id: Optional[int] = Field(None, description="Pre-assign a driver (optional)")
    deliveries: List[DeliveryCreate] = []
