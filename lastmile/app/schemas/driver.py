"""
Driver self-service schemas: profile and COD wallet.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type
from typing import List, Optional
from lastmile.app.models.route_enums import DeliveryStatus
from lastmile.app.schemas.auth import DriverInfo


class DriverMetrics(BaseModel):
    delivered_today: int
    assigned_today: int
    efficiency: float
    hours_worked: float
    rating: float


class ProfileResponse(DriverInfo):
    metrics: DriverMetrics


class ProfileUpdate(BaseModel):
    """Fields a driver may change about themselves."""
    phone: Optional[str] = Field(None, max_length=50)
    vehicle_number: Optional[str] = Field(None, max_length=50)
    photo_url: Optional[str] = Field(None, max_length=500)


class WalletOrder(BaseModel):
    id: int
    package_ref: Optional[str] = None
    customer_name: str
    expected_amount: float
    collected_amount: float
    status: DeliveryStatus
    is_delivered: bool


class WalletResponse(BaseModel):
    date: date_type
    total_expected: float
    total_collected: float
    discrepancy: float
    orders: List[WalletOrder] = []
