"""
Route and delivery enumerations.
"""

import enum


class RouteStatus(str, enum.Enum):
    """Route status enumeration."""
    PENDING = "PENDING"  # Created by dispatch, waiting to be claimed
    IN_PROGRESS = "IN_PROGRESS"  # Claimed by a driver
    COMPLETED = "COMPLETED"  # Every non-cancelled stop is final
    CANCELLED = "CANCELLED"  # Withdrawn before it started


class DeliveryStatus(str, enum.Enum):
    """Delivery (stop) status enumeration."""
    PENDING = "PENDING"
    ATTEMPTED = "ATTEMPTED"  # Semi-terminal: customer absent, retry later
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"
    ON_HOLD = "ON_HOLD"  # Semi-terminal
    FAILED = "FAILED"
    PICKED_UP = "PICKED_UP"  # Pickup legs only


class DeliveryType(str, enum.Enum):
    """Payment type of a delivery."""
    COD = "COD"  # Cash on delivery
    PREPAID = "PREPAID"
    RETURN = "RETURN"


class StopType(str, enum.Enum):
    """Leg of an order a stop represents."""
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
