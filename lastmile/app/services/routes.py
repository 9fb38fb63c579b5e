"""
Route service: loading, claiming and status changes.

Claiming is a compare-and-set UPDATE so that concurrent claims on the
same route resolve to exactly one winner without row locks.
"""

import logging
from datetime import datetime, date as date_type
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.core.exceptions import (
    ResourceNotFoundError,
    RouteAlreadyClaimedError,
    InvalidStateTransitionError,
)
from lastmile.app.models.route import Route
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.route_enums import RouteStatus
from lastmile.app.services.route_state import (
    check_route_transition,
    check_route_completion,
    TERMINAL_ROUTE_STATUSES,
)

logger = logging.getLogger(__name__)


async def get_route(db: AsyncSession, route_id: str, refresh: bool = False) -> Route:
    """
    Load a route or raise 404.

    refresh=True bypasses the identity map, used after bulk UPDATEs.
    """
    query = select(Route).where(Route.id == route_id)
    if refresh:
        query = query.execution_options(populate_existing=True)

    result = await db.execute(query)
    route = result.scalar_one_or_none()

    if not route:
        raise ResourceNotFoundError("Route", route_id)

    return route


async def get_route_deliveries(db: AsyncSession, route_id: str) -> List[Delivery]:
    """Deliveries of a route in stop order."""
    result = await db.execute(
        select(Delivery).where(Delivery.route_id == route_id).order_by(Delivery.id)
    )
    return list(result.scalars().all())


async def list_routes(
    db: AsyncSession,
    driver_id: Optional[int] = None,
    status: Optional[RouteStatus] = None,
    route_date: Optional[date_type] = None,
    include_unassigned: bool = False,
) -> List[Route]:
    """
    List routes with optional filters.

    include_unassigned adds routes nobody has claimed yet, which a driver
    needs to see in order to claim them.
    """
    query = select(Route)

    if driver_id is not None:
        if include_unassigned:
            query = query.where((Route.driver_id == driver_id) | (Route.driver_id.is_(None)))
        else:
            query = query.where(Route.driver_id == driver_id)

    if status is not None:
        query = query.where(Route.status == status)

    if route_date is not None:
        query = query.where(Route.date == route_date)

    query = query.order_by(Route.date.desc(), Route.id)

    result = await db.execute(query)
    return list(result.scalars().all())


async def claim_route(db: AsyncSession, route_id: str, driver_id: int) -> Tuple[Route, bool]:
    """
    Assign an unclaimed PENDING route to a driver and start it.

    Returns:
        (route, claimed) where claimed is False when the caller already held it

    Raises:
        ResourceNotFoundError: route does not exist
        RouteAlreadyClaimedError: another driver holds the route
        InvalidStateTransitionError: route is COMPLETED or CANCELLED
    """
    result = await db.execute(
        update(Route)
        .where(
            Route.id == route_id,
            Route.driver_id.is_(None),
            Route.status == RouteStatus.PENDING,
        )
        .values(
            driver_id=driver_id,
            status=RouteStatus.IN_PROGRESS,
            started_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        await db.commit()
        route = await get_route(db, route_id, refresh=True)
        logger.info("Route %s claimed by driver %s", route_id, driver_id)
        return route, True

    # Lost the compare-and-set: work out why
    await db.rollback()
    route = await get_route(db, route_id, refresh=True)

    if route.driver_id == driver_id:
        return route, False

    if route.driver_id is not None:
        raise RouteAlreadyClaimedError(route_id)

    raise InvalidStateTransitionError(
        "route", route.status.value, RouteStatus.IN_PROGRESS.value,
        reason=f"Route is {route.status.value} and cannot be claimed",
    )


async def change_route_status(db: AsyncSession, route: Route, requested: RouteStatus) -> bool:
    """
    Move a route through its lifecycle.

    Completion requires every live delivery to be final. Re-asserting the
    current status is a no-op.

    Returns:
        True if the status changed
    """
    if not check_route_transition(route.status, requested):
        return False

    if requested == RouteStatus.COMPLETED:
        check_route_completion(await get_route_deliveries(db, route.id))

    now = datetime.utcnow()
    route.status = requested
    if requested == RouteStatus.IN_PROGRESS and route.started_at is None:
        route.started_at = now
    if requested in TERMINAL_ROUTE_STATUSES:
        route.completed_at = now

    await db.commit()
    await db.refresh(route)

    logger.info("Route %s moved to %s", route.id, requested.value)
    return True
