"""
Raw HTTP client for the delivery API.

Every call either returns the decoded JSON body or raises a
DriverApiError subclass. No queueing happens here; the offline queue
replays through this class and DriverClient layers the offline policy
on top of it.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from lastmile.driver.config import client_settings
from lastmile.driver.errors import ConnectivityError, error_for_status

logger = logging.getLogger(__name__)


class DriverApi:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or client_settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else client_settings.request_timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "DriverApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self.client.request(method, path, headers=headers, json=json, params=params)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ConnectivityError(f"Could not reach server: {exc}")

        if response.status_code >= 400:
            message, detail = _error_message(response)
            raise error_for_status(response.status_code, message, detail)

        if not response.content:
            return None
        return response.json()

    # Authentication

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"username": username, "password": password})

    async def logout(self, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/logout", token=token)

    # Profile and wallet

    async def get_profile(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/driver/profile", token=token)

    async def update_profile(self, token: str, **fields) -> Dict[str, Any]:
        return await self._request("PUT", "/driver/profile", token=token, json=fields)

    async def get_wallet(self, token: str, date: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("GET", "/driver/wallet", token=token, params={"date": date})

    # Routes

    async def get_routes(self, token: str, status: Optional[str] = None, date: Optional[str] = None) -> list:
        return await self._request("GET", "/routes", token=token, params={"status": status, "date": date})

    async def get_route(self, route_id: str, token: str) -> Dict[str, Any]:
        return await self._request("GET", f"/routes/{route_id}", token=token)

    async def claim_route(self, route_id: str, token: str) -> Dict[str, Any]:
        return await self._request("POST", f"/routes/{route_id}/claim", token=token)

    async def update_route_status(self, route_id: str, status: str, token: str) -> Dict[str, Any]:
        return await self._request("PUT", f"/routes/{route_id}/status", token=token, json={"status": status})

    async def finish_route(self, route_id: str, token: str) -> Dict[str, Any]:
        return await self.update_route_status(route_id, "COMPLETED", token)

    # Deliveries and stops

    async def get_delivery(self, delivery_id: int, token: str) -> Dict[str, Any]:
        return await self._request("GET", f"/deliveries/{delivery_id}", token=token)

    async def update_delivery_status(
        self,
        delivery_id: int,
        status: str,
        token: str,
        photo_base64: Optional[str] = None,
        notes: Optional[str] = None,
        collected_amount: Optional[float] = None,
    ) -> Dict[str, Any]:
        body = {"status": status, "photo_base64": photo_base64, "notes": notes, "collected_amount": collected_amount}
        return await self._request(
            "PUT", f"/deliveries/{delivery_id}/status", token=token,
            json={k: v for k, v in body.items() if v is not None},
        )

    async def update_stop_status(
        self,
        stop_id: int,
        status: str,
        token: str,
        photo: Optional[str] = None,
        notes: Optional[str] = None,
        collected_amount: Optional[float] = None,
    ) -> Dict[str, Any]:
        body = {"status": status, "photo": photo, "notes": notes, "collected_amount": collected_amount}
        return await self._request(
            "PUT", f"/stops/{stop_id}/status", token=token,
            json={k: v for k, v in body.items() if v is not None},
        )

    async def scan_pickup(self, code: str, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/deliveries/pickup", token=token, json={"code": code})

    # Reports

    async def create_report(self, report_data: Dict[str, Any], token: str) -> Dict[str, Any]:
        return await self._request("POST", "/reports", token=token, json=report_data)

    async def get_reports(self, token: str, status: Optional[str] = None) -> list:
        return await self._request("GET", "/reports", token=token, params={"status": status})

    # Shifts

    async def start_shift(self, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/shifts/start", token=token)

    async def end_shift(self, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/shifts/end", token=token)

    async def get_shift_status(self, token: str) -> Dict[str, Any]:
        return await self._request("GET", "/shifts/status", token=token)

    async def start_break(self, break_type: str, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/shifts/breaks/start", token=token, json={"type": break_type})

    async def end_break(self, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/shifts/breaks/end", token=token)


def _error_message(response: httpx.Response):
    """Pull the message out of the API's error envelope, falling back to the reason."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}", None

    if isinstance(body, dict):
        message = body.get("message") or body.get("detail") or response.reason_phrase
        return str(message), body.get("details")

    return response.reason_phrase or f"HTTP {response.status_code}", body
