"""
Shift and break endpoint tests.
"""

import pytest
from sqlalchemy import select

from lastmile.app.models.shift import Shift


@pytest.mark.asyncio
async def test_status_off_duty_by_default(client, driver_headers):
    response = await client.get("/shifts/status", headers=driver_headers)

    assert response.status_code == 200
    assert response.json() == {"is_on_duty": False, "is_on_break": False, "shift": None}


@pytest.mark.asyncio
async def test_clock_in_is_idempotent(client, driver, driver_headers, db_session):
    first = await client.post("/shifts/start", headers=driver_headers)
    second = await client.post("/shifts/start", headers=driver_headers)

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]

    result = await db_session.execute(select(Shift).where(Shift.driver_id == driver.id))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_break_lifecycle(client, driver_headers):
    await client.post("/shifts/start", headers=driver_headers)

    started = await client.post("/shifts/breaks/start", json={"type": "lunch"}, headers=driver_headers)
    assert started.status_code == 200
    assert started.json()["type"] == "lunch"

    status = (await client.get("/shifts/status", headers=driver_headers)).json()
    assert status["is_on_duty"] is True
    assert status["is_on_break"] is True

    duplicate = await client.post("/shifts/breaks/start", json={"type": "short"}, headers=driver_headers)
    assert duplicate.status_code == 400

    ended = await client.post("/shifts/breaks/end", headers=driver_headers)
    assert ended.status_code == 200
    assert ended.json()["end_time"] is not None

    status = (await client.get("/shifts/status", headers=driver_headers)).json()
    assert status["is_on_break"] is False
    assert len(status["shift"]["breaks"]) == 1


@pytest.mark.asyncio
async def test_break_requires_shift(client, driver_headers):
    response = await client.post("/shifts/breaks/start", json={"type": "short"}, headers=driver_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "No active shift"


@pytest.mark.asyncio
async def test_end_break_without_break_is_404(client, driver_headers):
    await client.post("/shifts/start", headers=driver_headers)

    response = await client.post("/shifts/breaks/end", headers=driver_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_clock_out_closes_open_break(client, driver_headers):
    await client.post("/shifts/start", headers=driver_headers)
    await client.post("/shifts/breaks/start", json={"type": "short"}, headers=driver_headers)

    response = await client.post("/shifts/end", headers=driver_headers)

    assert response.status_code == 200
    shift = response.json()
    assert shift["end_time"] is not None
    assert shift["breaks"][0]["end_time"] is not None

    status = (await client.get("/shifts/status", headers=driver_headers)).json()
    assert status["is_on_duty"] is False


@pytest.mark.asyncio
async def test_clock_out_without_shift_is_404(client, driver_headers):
    response = await client.post("/shifts/end", headers=driver_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_new_shift_after_clock_out(client, driver_headers):
    first = await client.post("/shifts/start", headers=driver_headers)
    await client.post("/shifts/end", headers=driver_headers)

    second = await client.post("/shifts/start", headers=driver_headers)

    assert second.status_code == 200
    assert second.json()["id"] != first.json()["id"]
