"""
Network monitor tests.
"""

import httpx
import pytest

from lastmile.driver.network import NetworkMonitor


def test_listener_called_immediately_with_state():
    monitor = NetworkMonitor(initial=False)
    seen = []

    monitor.add_listener(seen.append)

    assert seen == [False]


def test_listeners_notified_on_every_event():
    monitor = NetworkMonitor(initial=True)
    seen = []
    monitor.add_listener(seen.append)

    monitor.set_online(True)
    monitor.set_online(False)
    monitor.set_online(False)
    monitor.set_online(True)

    assert seen == [True, True, False, False, True]
    assert monitor.is_online() is True


def test_removed_listener_is_not_called():
    monitor = NetworkMonitor()
    seen = []
    monitor.add_listener(seen.append)
    monitor.remove_listener(seen.append)

    monitor.set_online(False)

    assert seen == [True]


def test_listener_can_unsubscribe_while_notified():
    monitor = NetworkMonitor()
    calls = []

    def once(online):
        calls.append(online)
        if not online:
            monitor.remove_listener(once)

    monitor.add_listener(once)
    monitor.add_listener(lambda online: calls.append(("second", online)))

    monitor.set_online(False)
    monitor.set_online(True)

    assert calls == [True, ("second", True), False, ("second", False), ("second", True)]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code,expected", [(200, True), (404, True), (503, False)])
async def test_refresh_probes_health(status_code, expected):
    transport = httpx.MockTransport(lambda request: httpx.Response(status_code))
    monitor = NetworkMonitor(initial=not expected)

    async with httpx.AsyncClient(transport=transport, base_url="http://api.test/v1") as client:
        assert await monitor.refresh(client) is expected

    assert monitor.is_online() is expected


@pytest.mark.asyncio
async def test_refresh_transport_error_means_offline():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    monitor = NetworkMonitor(initial=True)

    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://api.test/v1") as client:
        assert await monitor.refresh(client) is False

    assert monitor.is_online() is False
