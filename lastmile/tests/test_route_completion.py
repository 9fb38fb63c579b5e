"""
Route lifecycle tests: starting, completing and cancelling.
"""

import pytest

from lastmile.app.models.route_enums import RouteStatus, DeliveryStatus


@pytest.mark.asyncio
async def test_complete_with_pending_stops_lists_them(client, driver, driver_headers, make_route):
    _, (done, open_one, cancelled) = await make_route(
        "DXB-2025-001",
        driver_id=driver.id,
        status=RouteStatus.IN_PROGRESS,
        deliveries=[
            {"status": DeliveryStatus.DELIVERED},
            {"status": DeliveryStatus.ATTEMPTED},
            {"status": DeliveryStatus.CANCELLED},
        ],
    )

    response = await client.put("/routes/DXB-2025-001/status", json={"status": "COMPLETED"}, headers=driver_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_STATE_001"
    assert body["details"]["pending_delivery_ids"] == [open_one.id]


@pytest.mark.asyncio
async def test_complete_after_all_stops_final(client, driver, driver_headers, make_route):
    _, (stop,) = await make_route(
        "DXB-2025-001", driver_id=driver.id, status=RouteStatus.IN_PROGRESS, deliveries=[{}]
    )

    await client.put(f"/deliveries/{stop.id}/status", json={"status": "RETURNED"}, headers=driver_headers)
    response = await client.put("/routes/DXB-2025-001/status", json={"status": "COMPLETED"}, headers=driver_headers)

    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"
    assert response.json()["completed_at"] is not None


@pytest.mark.asyncio
async def test_completing_twice_is_noop(client, driver, driver_headers, make_route):
    await make_route("DXB-2025-001", driver_id=driver.id, status=RouteStatus.IN_PROGRESS)

    first = await client.put("/routes/DXB-2025-001/status", json={"status": "COMPLETED"}, headers=driver_headers)
    second = await client.put("/routes/DXB-2025-001/status", json={"status": "COMPLETED"}, headers=driver_headers)

    assert second.status_code == 200
    assert second.json()["completed_at"] == first.json()["completed_at"]


@pytest.mark.asyncio
async def test_completed_route_cannot_restart(client, driver, driver_headers, make_route):
    await make_route("DXB-2025-001", driver_id=driver.id, status=RouteStatus.COMPLETED)

    response = await client.put("/routes/DXB-2025-001/status", json={"status": "IN_PROGRESS"}, headers=driver_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unclaimed_route_status_is_403(client, driver_headers, make_route):
    await make_route("OPEN-1")

    response = await client.put("/routes/OPEN-1/status", json={"status": "IN_PROGRESS"}, headers=driver_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_route_summary_counts_final_stops(client, driver, driver_headers, make_route):
    await make_route(
        "DXB-2025-001",
        driver_id=driver.id,
        status=RouteStatus.IN_PROGRESS,
        deliveries=[{"status": DeliveryStatus.DELIVERED}, {}, {}],
    )

    response = await client.get("/routes", headers=driver_headers)

    summary = response.json()[0]
    assert summary["delivery_count"] == 3
    assert summary["completed_count"] == 1
