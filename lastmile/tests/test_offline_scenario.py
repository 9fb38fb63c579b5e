"""
End-to-end offline scenarios for the driver core.
"""

import httpx
import pytest
from sqlalchemy import select

from lastmile.app.main import app
from lastmile.app.models.delivery import Delivery
from lastmile.app.models.route_enums import RouteStatus, DeliveryStatus, DeliveryType
from lastmile.driver.config import ClientSettings
from lastmile.driver.core import DriverCore
from lastmile.driver.sync import QueuedResult


@pytest.fixture
def settings(tmp_path):
    return ClientSettings(api_base_url="http://api.test/v1", storage_path=str(tmp_path / "driver.json"))


@pytest.mark.asyncio
async def test_queued_update_survives_restart_and_replays_once(settings, fake_server):
    transport = httpx.MockTransport(fake_server.handler)

    core = DriverCore(settings, transport=transport, online=True)
    core.session.save_login({"token": "tok", "driver": {"id": 1, "username": "ahmed"}})
    core.network.set_online(False)

    result = await core.client.update_delivery_status(42, "DELIVERED", core.session.token, collected_amount=15.0)
    assert isinstance(result, QueuedResult)
    await core.aclose()

    restarted = DriverCore(settings, transport=transport, online=False)
    assert restarted.queue.get_queue_size() == 1
    assert restarted.resume()

    restarted.network.set_online(True)
    summary = await restarted.auto_sync.last_task

    assert summary == {"total": 1, "synced": 1, "failed": 0}
    assert fake_server.requests == [
        ("PUT", "/v1/deliveries/42/status", {"status": "DELIVERED", "collected_amount": 15.0}),
    ]
    await restarted.aclose()

    assert DriverCore(settings, transport=transport).queue.get_queue_size() == 0


@pytest.mark.asyncio
async def test_resume_without_session_does_not_sync(settings, fake_server):
    core = DriverCore(settings, transport=httpx.MockTransport(fake_server.handler), online=False)

    assert core.resume() is False
    await core.aclose()


@pytest.mark.asyncio
async def test_check_connectivity_probes_health(settings, fake_server):
    core = DriverCore(settings, transport=httpx.MockTransport(fake_server.handler), online=False)

    assert await core.check_connectivity() is True
    assert core.network.is_online()
    assert fake_server.paths() == ["/v1/health"]
    await core.aclose()


@pytest.mark.asyncio
async def test_offline_delivery_reaches_real_server(tmp_path, driver, make_route, db_session):
    _, (stop,) = await make_route(
        "DXB-2025-001",
        driver_id=driver.id,
        status=RouteStatus.IN_PROGRESS,
        deliveries=[{"type": DeliveryType.COD, "cod_amount": 80.0}],
    )
    settings = ClientSettings(api_base_url="http://test/v1", storage_path=str(tmp_path / "driver.json"))
    core = DriverCore(settings, transport=httpx.ASGITransport(app=app), online=True)

    await core.login(driver.username, "secret123")
    assert core.session.driver["id"] == driver.id

    core.network.set_online(False)
    token = core.session.token
    await core.client.update_delivery_status(stop.id, "DELIVERED", token, collected_amount=80.0)
    # Same action queued twice, as happens when the app retries on its own
    await core.client.update_delivery_status(stop.id, "DELIVERED", token, collected_amount=80.0)

    core.network.set_online(True)
    summary = await core.auto_sync.last_task

    assert summary == {"total": 2, "synced": 2, "failed": 0}
    result = await db_session.execute(
        select(Delivery).where(Delivery.id == stop.id).execution_options(populate_existing=True)
    )
    delivered = result.scalar_one()
    assert delivered.status == DeliveryStatus.DELIVERED
    assert delivered.collected_amount == 80.0
    await core.aclose()
