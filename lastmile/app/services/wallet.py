"""
Cash-on-delivery reconciliation for a driver's day.
"""

from datetime import date as date_type
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.models.delivery import Delivery
from lastmile.app.models.route import Route
from lastmile.app.models.route_enums import DeliveryStatus, DeliveryType


async def build_wallet(db: AsyncSession, driver_id: int, wallet_date: date_type) -> Dict[str, Any]:
    """
    Sum expected vs collected cash over the driver's routes for a date.

    Expected counts COD deliveries only; collected counts whatever was
    recorded, so a discrepancy shows up as collected minus expected.
    """
    result = await db.execute(
        select(Delivery)
        .join(Route, Route.id == Delivery.route_id)
        .where(Route.driver_id == driver_id, Route.date == wallet_date)
        .order_by(Delivery.route_id, Delivery.id)
    )
    deliveries = result.scalars().all()

    total_expected = 0.0
    total_collected = 0.0
    orders = []

    for delivery in deliveries:
        expected = (delivery.cod_amount or 0.0) if delivery.type == DeliveryType.COD else 0.0
        collected = delivery.collected_amount or 0.0
        total_expected += expected
        total_collected += collected

        if delivery.type == DeliveryType.COD or delivery.collected_amount is not None:
            orders.append({
                "id": delivery.id,
                "package_ref": delivery.package_ref,
                "customer_name": delivery.customer_name,
                "expected_amount": expected,
                "collected_amount": collected,
                "status": delivery.status,
                "is_delivered": delivery.status == DeliveryStatus.DELIVERED,
            })

    return {
        "date": wallet_date,
        "total_expected": round(total_expected, 2),
        "total_collected": round(total_collected, 2),
        "discrepancy": round(total_collected - total_expected, 2),
        "orders": orders,
    }
