"""
Delivery (stop) schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from lastmile.app.models.route_enums import DeliveryStatus, DeliveryType, StopType


class DeliveryResponse(BaseModel):
    """One stop as returned to drivers and dispatch."""
    id: int
    route_id: str
    order_id: Optional[str] = None
    stop_type: StopType
    customer_name: str
    customer_phone: Optional[str] = None
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    package_ref: Optional[str] = None
    weight: Optional[str] = None
    dimensions: Optional[str] = None
    type: DeliveryType
    cod_amount: float
    collected_amount: Optional[float] = None
    status: DeliveryStatus
    proof_photo_url: Optional[str] = None
    notes: Optional[str] = None
    delivered_at: Optional[datetime] = None
    attempted_at: Optional[datetime] = None
    picked_up_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeliveryStatusUpdate(BaseModel):
    """Body of PUT /deliveries/{id}/status."""
    status: DeliveryStatus
    photo_base64: Optional[str] = Field(None, description="Proof photo, base64 or data URI")
    notes: Optional[str] = None
    collected_amount: Optional[float] = Field(None, ge=0)


class StopStatusUpdate(BaseModel):
    """Body of PUT /stops/{id}/status."""
    status: DeliveryStatus
    photo: Optional[str] = Field(None, description="Proof photo, base64 or data URI")
    notes: Optional[str] = None
    collected_amount: Optional[float] = Field(None, ge=0)


class PickupScanRequest(BaseModel):
    """Package reference read from the parcel label."""
    code: str = Field(..., min_length=1)


class DeliveryCreate(BaseModel):
    """Stop definition nested in a dispatch route creation."""
    order_id: Optional[str] = None
    stop_type: StopType = StopType.DELIVERY
    customer_name: str = Field(..., min_length=1)
    customer_phone: Optional[str] = None
    address: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    package_ref: Optional[str] = None
    weight: Optional[str] = None
    dimensions: Optional[str] = None
    type: DeliveryType = DeliveryType.PREPAID
    cod_amount: float = Field(0, ge=0)
