"""
Pickup/delivery pairing for the stop list.

Stops that share an order id are shown as one group; the delivery leg
stays locked until its pickup leg has been picked up. This is a display
rule only, the server accepts updates in any order.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

PICKED_UP = "PICKED_UP"
PICKUP = "PICKUP"
DELIVERY = "DELIVERY"

FINAL_STATUSES = {"DELIVERED", "RETURNED", "CANCELLED", "FAILED"}


@dataclass
class StopGroup:
    """One order on the route: a pickup leg, a delivery leg, or both."""
    order_id: Optional[str]
    pickup: Optional[Dict[str, Any]] = None
    delivery: Optional[Dict[str, Any]] = None

    @property
    def is_paired(self) -> bool:
        return self.pickup is not None and self.delivery is not None

    @property
    def is_delivery_locked(self) -> bool:
        if self.pickup is None or self.delivery is None:
            return False
        return self.pickup.get("status") != PICKED_UP

    @property
    def is_complete(self) -> bool:
        legs = [leg for leg in (self.pickup, self.delivery) if leg is not None]
        return all(is_leg_done(leg) for leg in legs)


def is_leg_done(stop: Dict[str, Any]) -> bool:
    status = stop.get("status")
    if stop.get("stop_type") == PICKUP and status == PICKED_UP:
        return True
    return status in FINAL_STATUSES


def group_stops(deliveries: List[Dict[str, Any]]) -> List[StopGroup]:
    """
    Merge stops by order id, keeping the order in which each order first appears.

    Stops without an order id become their own group.
    """
    groups: List[StopGroup] = []
    by_order: Dict[str, StopGroup] = {}

    for stop in deliveries:
        order_id = stop.get("order_id")
        is_pickup = stop.get("stop_type") == PICKUP

        if not order_id:
            group = StopGroup(order_id=None)
            groups.append(group)
        else:
            group = by_order.get(order_id)
            if group is None:
                group = StopGroup(order_id=order_id)
                by_order[order_id] = group
                groups.append(group)

        if is_pickup:
            group.pickup = stop
        else:
            group.delivery = stop

    return groups


def is_actionable(stop: Dict[str, Any], groups: List[StopGroup]) -> bool:
    """Whether the driver may act on this stop now."""
    if is_leg_done(stop):
        return False

    for group in groups:
        if group.delivery is stop or (
            group.delivery is not None and stop.get("id") is not None
            and group.delivery.get("id") == stop.get("id")
        ):
            return not group.is_delivery_locked

    return True
