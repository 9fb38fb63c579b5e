"""
Wiring for the driver-side sync core.

Builds the store, API, network monitor, queue, session, time tracker,
client and auto-sync from ClientSettings so the app has one object to
hold on to.
"""

from typing import Optional

import httpx

from lastmile.driver.api import DriverApi
from lastmile.driver.config import ClientSettings, client_settings
from lastmile.driver.network import NetworkMonitor
from lastmile.driver.offline_queue import OfflineQueue
from lastmile.driver.session import DriverSession
from lastmile.driver.storage import KeyValueStore, open_store
from lastmile.driver.sync import DriverClient, AutoSync
from lastmile.driver.time_tracker import TimeTracker


class DriverCore:
    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        store: Optional[KeyValueStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        online: bool = True,
    ):
        settings = settings or client_settings
        self.store = store if store is not None else open_store(settings.storage_path)
        self.api = DriverApi(settings.api_base_url, settings.request_timeout, transport=transport)
        self.network = NetworkMonitor(initial=online)
        self.session = DriverSession(self.store)
        self.queue = OfflineQueue(self.store, self.api)
        self.tracker = TimeTracker(self.store, api=self.api, token_provider=lambda: self.session.token)
        self.client = DriverClient(self.api, self.queue, self.network)
        self.auto_sync = AutoSync(self.network, self.queue, lambda: self.session.token)

    async def login(self, username: str, password: str) -> dict:
        """Log in, remember the session, and start replaying queued work."""
        response = await self.client.login(username, password)
        self.session.save_login(response)
        self.auto_sync.start()
        return response

    def resume(self) -> bool:
        """After a restart: pick up the stored session and its queued work."""
        if not self.session.is_authenticated():
            return False
        self.auto_sync.start()
        return True

    async def check_connectivity(self) -> bool:
        return await self.network.refresh(self.api.client)

    async def aclose(self) -> None:
        self.auto_sync.stop()
        await self.api.aclose()
