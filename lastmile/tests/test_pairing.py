"""
Pickup/delivery grouping tests.
"""

from lastmile.driver.pairing import group_stops, is_actionable


def make_stops():
    return [
        {"id": 1, "order_id": "ORD-1", "stop_type": "PICKUP", "status": "PENDING"},
        {"id": 2, "order_id": None, "stop_type": "DELIVERY", "status": "PENDING"},
        {"id": 3, "order_id": "ORD-2", "stop_type": "DELIVERY", "status": "PENDING"},
        {"id": 4, "order_id": "ORD-1", "stop_type": "DELIVERY", "status": "PENDING"},
    ]


def test_groups_keep_first_appearance_order():
    groups = group_stops(make_stops())

    assert [g.order_id for g in groups] == ["ORD-1", None, "ORD-2"]
    assert groups[0].pickup["id"] == 1
    assert groups[0].delivery["id"] == 4
    assert groups[0].is_paired
    assert not groups[2].is_paired


def test_delivery_locked_until_picked_up():
    stops = make_stops()
    groups = group_stops(stops)

    assert groups[0].is_delivery_locked
    assert not is_actionable(stops[3], groups)
    assert is_actionable(stops[0], groups)

    stops[0]["status"] = "PICKED_UP"

    assert not groups[0].is_delivery_locked
    assert is_actionable(stops[3], groups)
    assert not is_actionable(stops[0], groups)


def test_unpaired_stops_are_actionable():
    stops = make_stops()
    groups = group_stops(stops)

    assert is_actionable(stops[1], groups)
    assert is_actionable(stops[2], groups)


def test_group_complete_when_all_legs_done():
    stops = make_stops()
    groups = group_stops(stops)

    stops[0]["status"] = "PICKED_UP"
    assert not groups[0].is_complete

    stops[3]["status"] = "DELIVERED"
    assert groups[0].is_complete
    assert not is_actionable(stops[3], groups)
