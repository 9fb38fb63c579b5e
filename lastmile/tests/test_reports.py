"""
Driver report tests.
"""

import pytest


@pytest.mark.asyncio
async def test_create_report_with_photo_and_location(client, driver, driver_headers, photo_uploader, tiny_png):
    response = await client.post(
        "/reports",
        json={
            "issue_type": "Flat tyre",
            "description": "Rear left, Sheikh Zayed Rd",
            "photo": tiny_png,
            "location": {"latitude": 25.08, "longitude": 55.14, "accuracy": 12.5},
        },
        headers=driver_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["driver_id"] == driver.id
    assert data["status"] == "PENDING"
    assert data["photo_url"] == "https://photos.test/reports/1.png"
    assert data["latitude"] == 25.08
    assert data["accuracy"] == 12.5
    assert photo_uploader.uploads == ["reports"]


@pytest.mark.asyncio
async def test_report_without_extras(client, driver_headers):
    response = await client.post("/reports", json={"issue_type": "Brake light"}, headers=driver_headers)

    assert response.status_code == 201
    assert response.json()["photo_url"] is None
    assert response.json()["latitude"] is None


@pytest.mark.asyncio
async def test_report_rejects_bad_coordinates(client, driver_headers):
    response = await client.post(
        "/reports",
        json={"issue_type": "Other", "location": {"latitude": 120, "longitude": 0}},
        headers=driver_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_only_own_reports(client, make_driver, auth_for):
    me = await make_driver(username="me")
    other = await make_driver(username="other")
    await client.post("/reports", json={"issue_type": "Mine"}, headers=auth_for(me))
    await client.post("/reports", json={"issue_type": "Theirs"}, headers=auth_for(other))

    response = await client.get("/reports", headers=auth_for(me))

    assert [r["issue_type"] for r in response.json()] == ["Mine"]


@pytest.mark.asyncio
async def test_other_drivers_report_is_403(client, make_driver, auth_for):
    owner = await make_driver(username="owner")
    other = await make_driver(username="other")
    created = await client.post("/reports", json={"issue_type": "Dent"}, headers=auth_for(owner))

    response = await client.get(f"/reports/{created.json()['id']}", headers=auth_for(other))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_report_is_404(client, driver_headers):
    response = await client.get("/reports/999", headers=driver_headers)
    assert response.status_code == 404
