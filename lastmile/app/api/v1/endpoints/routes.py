"""
Driver Route API Endpoints.

Drivers list their routes, open one, claim it and move it through its
lifecycle.
"""

from datetime import date as date_type
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lastmile.app.db.session import get_db
from lastmile.app.models.route import Route
from lastmile.app.models.route_enums import RouteStatus
from lastmile.app.schemas.route import RouteResponse, RouteSummary, RouteStatusUpdate
from lastmile.app.schemas.delivery import DeliveryResponse
from lastmile.app.core.guards import require_driver, ensure_route_access
from lastmile.app.services.audit import log_actor_event, AuditAction
from lastmile.app.services.route_state import is_final_delivery_status
from lastmile.app.services.routes import (
    get_route, get_route_deliveries, list_routes, claim_route, change_route_status
)

router = APIRouter(prefix="/routes", tags=["Driver - Routes"])


async def build_route_response(db: AsyncSession, route: Route) -> RouteResponse:
    """Route plus its stops in order."""
    deliveries = await get_route_deliveries(db, route.id)
    response = RouteResponse.model_validate(route)
    response.deliveries = [DeliveryResponse.model_validate(d) for d in deliveries]
    return response


async def build_route_summary(db: AsyncSession, route: Route) -> RouteSummary:
    deliveries = await get_route_deliveries(db, route.id)
    return RouteSummary(
        id=route.id,
        date=route.date,
        zone=route.zone,
        vehicle_info=route.vehicle_info,
        driver_id=route.driver_id,
        status=route.status,
        delivery_count=len(deliveries),
        completed_count=sum(1 for d in deliveries if is_final_delivery_status(d.status, d.stop_type)),
    )


@router.get("", response_model=List[RouteSummary])
async def list_driver_routes(
    status: Optional[RouteStatus] = Query(None, description="Filter by route status"),
    date: Optional[date_type] = Query(None, description="Filter by route date"),
    include_unassigned: bool = Query(False, description="Also list routes nobody has claimed"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's routes, newest date first."""
    routes = await list_routes(
        db,
        driver_id=current_user["user_id"],
        status=status,
        route_date=date,
        include_unassigned=include_unassigned,
    )
    return [await build_route_summary(db, route) for route in routes]


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route_detail(
    route_id: str = Path(..., description="Route ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a route with its deliveries.

    Unclaimed routes are visible so they can be claimed; routes assigned
    to another driver are not.
    """
    route = await get_route(db, route_id)
    ensure_route_access(route.driver_id, current_user)
    return await build_route_response(db, route)


@router.post("/{route_id}/claim", response_model=RouteResponse)
async def claim(
    route_id: str = Path(..., description="Route ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Claim an unassigned route and start it.

    Exactly one of several concurrent claimants wins; the others get 403.
    Claiming a route you already hold returns it unchanged.
    """
    route, claimed = await claim_route(db, route_id, current_user["user_id"])

    if claimed:
        await log_actor_event(
            db, current_user, AuditAction.ROUTE_CLAIMED, "route", route.id,
            metadata={"status": route.status.value}
        )

    return await build_route_response(db, route)


@router.put("/{route_id}/status", response_model=RouteResponse)
async def update_route_status(
    body: RouteStatusUpdate,
    route_id: str = Path(..., description="Route ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Move the caller's route to a new status.

    Completing requires every non-cancelled delivery to be final.
    """
    route = await get_route(db, route_id)
    ensure_route_access(route.driver_id, current_user, allow_unassigned=False)

    previous = route.status
    if await change_route_status(db, route, body.status):
        await log_actor_event(
            db, current_user, AuditAction.ROUTE_STATUS_CHANGED, "route", route.id,
            metadata={"from": previous.value, "to": body.status.value}
        )

    return await build_route_response(db, route)
