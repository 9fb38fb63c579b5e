"""
Route and delivery status rules, tested without the database.
"""

from types import SimpleNamespace

import pytest

from lastmile.app.core.exceptions import InvalidStateTransitionError
from lastmile.app.models.route_enums import RouteStatus, DeliveryStatus, StopType
from lastmile.app.services.route_state import (
    check_route_transition,
    check_route_completion,
    check_delivery_transition,
    is_final_delivery_status,
    pending_delivery_ids,
)


@pytest.mark.parametrize("current,requested", [
    (RouteStatus.PENDING, RouteStatus.IN_PROGRESS),
    (RouteStatus.PENDING, RouteStatus.CANCELLED),
    (RouteStatus.IN_PROGRESS, RouteStatus.COMPLETED),
])
def test_allowed_route_moves(current, requested):
    assert check_route_transition(current, requested) is True


@pytest.mark.parametrize("current,requested", [
    (RouteStatus.PENDING, RouteStatus.COMPLETED),
    (RouteStatus.IN_PROGRESS, RouteStatus.PENDING),
    (RouteStatus.IN_PROGRESS, RouteStatus.CANCELLED),
    (RouteStatus.COMPLETED, RouteStatus.IN_PROGRESS),
    (RouteStatus.CANCELLED, RouteStatus.PENDING),
])
def test_forbidden_route_moves(current, requested):
    with pytest.raises(InvalidStateTransitionError) as exc_info:
        check_route_transition(current, requested)
    assert exc_info.value.status_code == 400


def test_reasserting_route_status_is_noop():
    assert check_route_transition(RouteStatus.COMPLETED, RouteStatus.COMPLETED) is False


def stop(id, status, stop_type=StopType.DELIVERY):
    return SimpleNamespace(id=id, status=status, stop_type=stop_type)


def test_completion_ignores_cancelled_and_lists_pending():
    stops = [
        stop(1, DeliveryStatus.DELIVERED),
        stop(2, DeliveryStatus.CANCELLED),
        stop(3, DeliveryStatus.ATTEMPTED),
        stop(4, DeliveryStatus.PICKED_UP, StopType.PICKUP),
        stop(5, DeliveryStatus.ON_HOLD),
    ]

    assert pending_delivery_ids(stops) == [3, 5]

    with pytest.raises(InvalidStateTransitionError) as exc_info:
        check_route_completion(stops)
    assert exc_info.value.details["pending_delivery_ids"] == [3, 5]


def test_completion_passes_when_all_final():
    check_route_completion([
        stop(1, DeliveryStatus.DELIVERED),
        stop(2, DeliveryStatus.RETURNED),
        stop(3, DeliveryStatus.FAILED),
    ])


def test_picked_up_is_final_only_for_pickup_legs():
    assert is_final_delivery_status(DeliveryStatus.PICKED_UP, StopType.PICKUP)
    assert not is_final_delivery_status(DeliveryStatus.PICKED_UP, StopType.DELIVERY)
    assert not is_final_delivery_status(DeliveryStatus.ATTEMPTED, StopType.DELIVERY)


def test_non_final_delivery_can_move_anywhere():
    for requested in (DeliveryStatus.ATTEMPTED, DeliveryStatus.ON_HOLD, DeliveryStatus.DELIVERED):
        assert check_delivery_transition(
            DeliveryStatus.ATTEMPTED, requested, StopType.DELIVERY, RouteStatus.IN_PROGRESS
        ) is (requested != DeliveryStatus.ATTEMPTED)


def test_final_delivery_cannot_change():
    with pytest.raises(InvalidStateTransitionError):
        check_delivery_transition(
            DeliveryStatus.DELIVERED, DeliveryStatus.RETURNED, StopType.DELIVERY, RouteStatus.IN_PROGRESS
        )


def test_final_delivery_reassertion_is_noop_even_on_closed_route():
    assert check_delivery_transition(
        DeliveryStatus.DELIVERED, DeliveryStatus.DELIVERED, StopType.DELIVERY, RouteStatus.COMPLETED
    ) is False


def test_picked_up_rejected_for_delivery_leg():
    with pytest.raises(InvalidStateTransitionError):
        check_delivery_transition(
            DeliveryStatus.PENDING, DeliveryStatus.PICKED_UP, StopType.DELIVERY, RouteStatus.IN_PROGRESS
        )


def test_updates_on_closed_route_rejected():
    with pytest.raises(InvalidStateTransitionError):
        check_delivery_transition(
            DeliveryStatus.PENDING, DeliveryStatus.DELIVERED, StopType.DELIVERY, RouteStatus.CANCELLED
        )
