"""
Delivery status service.

Applies a validated status change to a stop, stamping the matching
timestamp and recording collected cash for COD stops.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.core.exceptions import ResourceNotFoundError
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.route import Route
from lastmile.app.models.route_enums import DeliveryStatus, DeliveryType, StopType
from lastmile.app.services.route_state import check_delivery_transition

logger = logging.getLogger(__name__)


async def get_delivery(db: AsyncSession, delivery_id: int) -> Delivery:
    result = await db.execute(select(Delivery).where(Delivery.id == delivery_id))
    delivery = result.scalar_one_or_none()

    if not delivery:
        raise ResourceNotFoundError("Delivery", delivery_id)

    return delivery


async def apply_delivery_status(
    db: AsyncSession,
    delivery: Delivery,
    route: Route,
    status: DeliveryStatus,
    photo_url: Optional[str] = None,
    notes: Optional[str] = None,
    collected_amount: Optional[float] = None,
) -> bool:
    """
    Update a delivery's status.

    Photo and notes are stored on every accepted update, including an
    idempotent re-assertion, so a replayed action can attach its proof.

    Returns:
        True if the status changed

    Raises:
        InvalidStateTransitionError: move not allowed
    """
    changed = check_delivery_transition(delivery.status, status, delivery.stop_type, route.status)

    now = datetime.utcnow()
    if changed:
        delivery.status = status
        if status == DeliveryStatus.DELIVERED:
            delivery.delivered_at = now
        elif status == DeliveryStatus.ATTEMPTED:
            delivery.attempted_at = now
        elif status == DeliveryStatus.PICKED_UP:
            delivery.picked_up_at = now

    if photo_url:
        delivery.proof_photo_url = photo_url
    if notes is not None:
        delivery.notes = notes

    if (
        status == DeliveryStatus.DELIVERED
        and delivery.type == DeliveryType.COD
        and collected_amount is not None
    ):
        delivery.collected_amount = collected_amount

    await db.commit()
    await db.refresh(delivery)

    if changed:
        logger.info("Delivery %s moved to %s", delivery.id, status.value)
    return changed


async def find_pickup_by_code(db: AsyncSession, code: str, driver_id: int) -> Delivery:
    """
    Find the pickup stop with this package reference on the driver's routes.

    Raises:
        ResourceNotFoundError: no such pickup
    """
    result = await db.execute(
        select(Delivery)
        .join(Route, Route.id == Delivery.route_id)
        .where(
            Delivery.package_ref == code,
            Delivery.stop_type == StopType.PICKUP,
            Route.driver_id == driver_id,
        )
        .order_by(Delivery.id)
    )
    delivery = result.scalars().first()

    if not delivery:
        raise ResourceNotFoundError("Pickup", code)

    return delivery
