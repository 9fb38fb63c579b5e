"""
Route and delivery status rules.

Pure functions shared by the driver and dispatch endpoints. Every check
raises InvalidStateTransitionError; callers decide what to persist.
"""

from typing import Iterable, List
from lastmile.app.core.exceptions import InvalidStateTransitionError
from lastmile.app.models.route_enums import RouteStatus, DeliveryStatus, StopType


# Allowed route moves (same-status re-assertion is handled separately)
ROUTE_TRANSITIONS = {
    RouteStatus.PENDING: {RouteStatus.IN_PROGRESS, RouteStatus.CANCELLED},
    RouteStatus.IN_PROGRESS: {RouteStatus.COMPLETED},
    RouteStatus.COMPLETED: set(),
    RouteStatus.CANCELLED: set(),
}

TERMINAL_ROUTE_STATUSES = {RouteStatus.COMPLETED, RouteStatus.CANCELLED}

FINAL_DELIVERY_STATUSES = {
    DeliveryStatus.DELIVERED,
    DeliveryStatus.RETURNED,
    DeliveryStatus.CANCELLED,
    DeliveryStatus.FAILED,
}


def is_final_delivery_status(status: DeliveryStatus, stop_type: StopType = StopType.DELIVERY) -> bool:
    """PICKED_UP closes a pickup leg; on a delivery leg it never occurs."""
    if status in FINAL_DELIVERY_STATUSES:
        return True
    return stop_type == StopType.PICKUP and status == DeliveryStatus.PICKED_UP


def check_route_transition(current: RouteStatus, requested: RouteStatus) -> bool:
    """
    Validate a route status change.

    Returns:
        True if the status actually changes, False for an idempotent re-assertion

    Raises:
        InvalidStateTransitionError: if the move is not allowed
    """
    if current == requested:
        return False

    if requested not in ROUTE_TRANSITIONS[current]:
        raise InvalidStateTransitionError("route", current.value, requested.value)

    return True


def pending_delivery_ids(deliveries: Iterable) -> List[int]:
    """IDs of non-cancelled deliveries that have not reached a final status."""
    return [
        d.id for d in deliveries
        if d.status != DeliveryStatus.CANCELLED
        and not is_final_delivery_status(d.status, d.stop_type)
    ]


def check_route_completion(deliveries: Iterable) -> None:
    """
    A route may only be completed once every live stop is final.

    Raises:
        InvalidStateTransitionError listing the outstanding stops
    """
    pending = pending_delivery_ids(deliveries)
    if pending:
        error = InvalidStateTransitionError(
            "route",
            RouteStatus.IN_PROGRESS.value,
            RouteStatus.COMPLETED.value,
            reason=f"Route has {len(pending)} unfinished deliveries",
        )
        error.details["pending_delivery_ids"] = pending
        raise error


def check_delivery_transition(
    current: DeliveryStatus,
    requested: DeliveryStatus,
    stop_type: StopType,
    route_status: RouteStatus,
) -> bool:
    """
    Validate a delivery status change.

    Returns:
        True if the status actually changes, False for an idempotent re-assertion

    Raises:
        InvalidStateTransitionError: if the move is not allowed
    """
    if requested == DeliveryStatus.PICKED_UP and stop_type != StopType.PICKUP:
        raise InvalidStateTransitionError(
            "delivery", current.value, requested.value,
            reason="PICKED_UP is only valid for pickup stops",
        )

    if current == requested:
        return False

    if route_status in TERMINAL_ROUTE_STATUSES:
        raise InvalidStateTransitionError(
            "delivery", current.value, requested.value,
            reason=f"Route is already {route_status.value}",
        )

    if is_final_delivery_status(current, stop_type):
        raise InvalidStateTransitionError(
            "delivery", current.value, requested.value,
            reason=f"Delivery is already {current.value}",
        )

    return True
