"""
Route claiming tests.

Covers first-claimant-wins, idempotent re-claims, terminal routes, and a
real concurrent race against a file-backed database.
"""

import asyncio
from datetime import datetime

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from lastmile.app.main import app
from lastmile.app.db.session import get_db, Base
from lastmile.app.core.jwt import create_access_token
from lastmile.app.core.security import get_password_hash
from lastmile.app.models.audit_log import AuditLog
from lastmile.app.models.driver import Driver
from lastmile.app.models.route import Route
from lastmile.app.models.route_enums import RouteStatus


@pytest.mark.asyncio
async def test_claim_unassigned_route(client, driver, driver_headers, make_route):
    await make_route("DXB-2025-001", deliveries=[{}, {}])

    response = await client.post("/routes/DXB-2025-001/claim", headers=driver_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["driver_id"] == driver.id
    assert data["status"] == "IN_PROGRESS"
    assert data["started_at"] is not None
    assert len(data["deliveries"]) == 2


@pytest.mark.asyncio
async def test_claim_is_audited(client, driver_headers, make_route, db_session):
    await make_route("DXB-2025-001")

    await client.post("/routes/DXB-2025-001/claim", headers=driver_headers)

    result = await db_session.execute(select(AuditLog).where(AuditLog.action == "ROUTE_CLAIMED"))
    entry = result.scalar_one()
    assert entry.target_type == "route"
    assert entry.target_id == "DXB-2025-001"


@pytest.mark.asyncio
async def test_reclaim_by_same_driver_is_idempotent(client, driver, driver_headers, make_route):
    await make_route("DXB-2025-001")

    first = await client.post("/routes/DXB-2025-001/claim", headers=driver_headers)
    second = await client.post("/routes/DXB-2025-001/claim", headers=driver_headers)

    assert second.status_code == 200
    assert second.json()["driver_id"] == driver.id
    assert second.json()["started_at"] == first.json()["started_at"]


@pytest.mark.asyncio
async def test_claim_route_held_by_other_driver_is_403(client, make_driver, auth_for, make_route):
    owner = await make_driver(username="owner")
    intruder = await make_driver(username="intruder")
    await make_route("DXB-2025-001", driver_id=owner.id, status=RouteStatus.IN_PROGRESS)

    response = await client.post("/routes/DXB-2025-001/claim", headers=auth_for(intruder))

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_CLAIM_001"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [RouteStatus.COMPLETED, RouteStatus.CANCELLED])
async def test_claim_terminal_route_is_400(client, driver_headers, make_route, status):
    await make_route("DXB-2025-001", status=status)

    response = await client.post("/routes/DXB-2025-001/claim", headers=driver_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_STATE_001"


@pytest.mark.asyncio
async def test_claim_missing_route_is_404(client, driver_headers):
    response = await client.post("/routes/NOPE/claim", headers=driver_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_route_of_other_driver_is_hidden(client, make_driver, auth_for, make_route):
    owner = await make_driver(username="owner")
    other = await make_driver(username="other")
    await make_route("DXB-2025-001", driver_id=owner.id, status=RouteStatus.IN_PROGRESS)

    assert (await client.get("/routes/DXB-2025-001", headers=auth_for(owner))).status_code == 200
    assert (await client.get("/routes/DXB-2025-001", headers=auth_for(other))).status_code == 403


@pytest.mark.asyncio
async def test_list_routes_only_returns_own_unless_asked(client, make_driver, auth_for, make_route):
    me = await make_driver(username="me")
    other = await make_driver(username="other")
    await make_route("MINE-1", driver_id=me.id, status=RouteStatus.IN_PROGRESS)
    await make_route("THEIRS-1", driver_id=other.id, status=RouteStatus.IN_PROGRESS)
    await make_route("OPEN-1")

    own = await client.get("/routes", headers=auth_for(me))
    assert [r["id"] for r in own.json()] == ["MINE-1"]

    with_open = await client.get("/routes", params={"include_unassigned": "true"}, headers=auth_for(me))
    assert sorted(r["id"] for r in with_open.json()) == ["MINE-1", "OPEN-1"]


# Concurrent claims need separate connections, so use a file database

@pytest.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'claims.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory

    await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_claims_have_exactly_one_winner(file_session_factory):
    async with file_session_factory() as session:
        drivers = [
            Driver(username=f"racer{i}", hashed_password=get_password_hash("secret123"), full_name=f"Racer {i}")
            for i in range(2)
        ]
        session.add_all(drivers)
        await session.flush()
        session.add(Route(id="RACE-1", date=datetime.utcnow().date(), status=RouteStatus.PENDING))
        await session.commit()
        tokens = [
            create_access_token(data={"sub": d.username, "user_id": d.id, "role": "DRIVER"})
            for d in drivers
        ]

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test/v1") as ac:
        responses = await asyncio.gather(*[
            ac.post("/routes/RACE-1/claim", headers={"Authorization": f"Bearer {t}"})
            for t in tokens
        ])

    codes = sorted(r.status_code for r in responses)
    assert codes == [200, 403]

    winner = next(r for r in responses if r.status_code == 200).json()["driver_id"]
    async with file_session_factory() as session:
        route = (await session.execute(select(Route).where(Route.id == "RACE-1"))).scalar_one()
        assert route.driver_id == winner
        assert route.status == RouteStatus.IN_PROGRESS
