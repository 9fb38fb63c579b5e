"""
Offline-aware API facade for the driver app.

Reads need the server: they fail fast with OfflineError when the device
is offline. Mutations are deferred: while offline, or when the server
cannot be reached, they go to the offline queue and the caller gets a
QueuedResult instead of the server response. Auth and validation errors
are never queued since replaying them cannot succeed.

Route claiming counts as a read: who wins a claim is decided by the
server, so it is never deferred.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel

from lastmile.driver.api import DriverApi
from lastmile.driver.errors import DriverApiError, OfflineError
from lastmile.driver.network import NetworkMonitor
from lastmile.driver.offline_queue import OfflineQueue, ActionType

logger = logging.getLogger(__name__)


class QueuedResult(BaseModel):
    """Optimistic answer for a mutation that was deferred."""
    queued: bool = True
    action_id: str
    action_type: ActionType


class DriverClient:
    def __init__(self, api: DriverApi, queue: OfflineQueue, network: NetworkMonitor):
        self.api = api
        self.queue = queue
        self.network = network

    def _require_online(self) -> None:
        if not self.network.is_online():
            raise OfflineError()

    async def _mutate(
        self,
        action_type: ActionType,
        payload: Dict[str, Any],
        call: Callable,
    ) -> Union[Any, QueuedResult]:
        if self.network.is_online():
            try:
                return await call()
            except DriverApiError as exc:
                if not exc.transient:
                    raise
                logger.warning("%s failed (%s), queueing for later", action_type.value, exc)

        action = self.queue.add_to_queue(action_type, payload)
        return QueuedResult(action_id=action.id, action_type=action.type)

    # Reads

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        self._require_online()
        return await self.api.login(username, password)

    async def get_profile(self, token: str) -> Dict[str, Any]:
        self._require_online()
        return await self.api.get_profile(token)

    async def get_routes(self, token: str, status: Optional[str] = None, date: Optional[str] = None) -> list:
        self._require_online()
        return await self.api.get_routes(token, status=status, date=date)

    async def get_route(self, route_id: str, token: str) -> Dict[str, Any]:
        self._require_online()
        return await self.api.get_route(route_id, token)

    async def claim_route(self, route_id: str, token: str) -> Dict[str, Any]:
        self._require_online()
        return await self.api.claim_route(route_id, token)

    async def get_wallet(self, token: str, date: Optional[str] = None) -> Dict[str, Any]:
        self._require_online()
        return await self.api.get_wallet(token, date=date)

    async def get_shift_status(self, token: str) -> Dict[str, Any]:
        self._require_online()
        return await self.api.get_shift_status(token)

    async def get_reports(self, token: str, status: Optional[str] = None) -> list:
        self._require_online()
        return await self.api.get_reports(token, status=status)

    # Mutations

    async def update_delivery_status(
        self,
        delivery_id: int,
        status: str,
        token: str,
        photo_base64: Optional[str] = None,
        notes: Optional[str] = None,
        collected_amount: Optional[float] = None,
    ) -> Union[Dict[str, Any], QueuedResult]:
        payload = {
            "delivery_id": delivery_id,
            "status": status,
            "photo_base64": photo_base64,
            "notes": notes,
            "collected_amount": collected_amount,
        }
        return await self._mutate(
            ActionType.UPDATE_DELIVERY, payload,
            lambda: self.api.update_delivery_status(
                delivery_id, status, token,
                photo_base64=photo_base64, notes=notes, collected_amount=collected_amount,
            ),
        )

    async def update_stop_status(
        self,
        stop_id: int,
        status: str,
        token: str,
        photo: Optional[str] = None,
        notes: Optional[str] = None,
        collected_amount: Optional[float] = None,
    ) -> Union[Dict[str, Any], QueuedResult]:
        payload = {
            "stop_id": stop_id,
            "status": status,
            "photo": photo,
            "notes": notes,
            "collected_amount": collected_amount,
        }
        return await self._mutate(
            ActionType.UPDATE_STOP, payload,
            lambda: self.api.update_stop_status(
                stop_id, status, token, photo=photo, notes=notes, collected_amount=collected_amount,
            ),
        )

    async def finish_route(self, route_id: str, token: str) -> Union[Dict[str, Any], QueuedResult]:
        return await self._mutate(
            ActionType.FINISH_ROUTE, {"route_id": route_id},
            lambda: self.api.finish_route(route_id, token),
        )

    async def create_report(self, report_data: Dict[str, Any], token: str) -> Union[Dict[str, Any], QueuedResult]:
        return await self._mutate(
            ActionType.CREATE_REPORT, {"report_data": report_data},
            lambda: self.api.create_report(report_data, token),
        )

    async def sync_now(self, token: str) -> Optional[Dict[str, int]]:
        """Replay the queue now; None when offline, busy, or empty."""
        if not self.network.is_online():
            return None
        return await self.queue.process_queue(token)


class AutoSync:
    """
    Replays the queue whenever the network monitor reports online.

    Replays are scheduled as tasks on the running event loop; the most
    recent task is kept on `last_task` so callers can await it.
    """

    def __init__(self, network: NetworkMonitor, queue: OfflineQueue, token_provider: Callable[[], Optional[str]]):
        self.network = network
        self.queue = queue
        self.token_provider = token_provider
        self.last_task: Optional[asyncio.Task] = None
        self._started = False

    def start(self) -> None:
        if not self._started:
            self._started = True
            self.network.add_listener(self._on_change)

    def stop(self) -> None:
        if self._started:
            self._started = False
            self.network.remove_listener(self._on_change)

    def _on_change(self, online: bool) -> None:
        if not online or self.queue.get_queue_size() == 0:
            return
        if self.last_task is not None and not self.last_task.done():
            return

        token = self.token_provider()
        if not token:
            logger.debug("Online with %d queued actions but no session", self.queue.get_queue_size())
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, sync deferred")
            return

        self.last_task = loop.create_task(self.queue.process_queue(token))
