"""
Daily performance figures shown on the driver profile.
"""

from datetime import date as date_type
from typing import Any, Dict

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.models.delivery import Delivery
from lastmile.app.models.route import Route
from lastmile.app.models.route_enums import DeliveryStatus
from lastmile.app.services.shifts import hours_worked_on

# No ratings pipeline exists yet; clients display this fixed value
DEFAULT_RATING = 4.8


async def get_driver_metrics(db: AsyncSession, driver_id: int, day: date_type) -> Dict[str, Any]:
    """
    Delivered count, efficiency and hours worked for one day.

    Efficiency is delivered / assigned stops as a percentage, 100 when
    nothing is assigned.
    """
    base = (
        select(func.count(Delivery.id))
        .join(Route, Route.id == Delivery.route_id)
        .where(Route.driver_id == driver_id, Route.date == day)
    )

    assigned = (await db.execute(base)).scalar() or 0
    delivered = (await db.execute(
        base.where(Delivery.status == DeliveryStatus.DELIVERED)
    )).scalar() or 0

    efficiency = round(delivered / assigned * 100, 1) if assigned else 100.0

    return {
        "delivered_today": delivered,
        "assigned_today": assigned,
        "efficiency": efficiency,
        "hours_worked": await hours_worked_on(db, driver_id, day),
        "rating": DEFAULT_RATING,
    }
