"""
Persisted login session.

Keeps the token, driver profile and last route snapshot so the app can
start and show the route without a connection.
"""

import logging
from typing import Any, Dict, Optional

from lastmile.driver.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
DRIVER_KEY = "driver_info"
ROUTE_KEY = "route_snapshot"


class DriverSession:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _set(self, key: str, value: Any) -> None:
        try:
            self.store.set(key, value)
        except StorageError:
            logger.error("Failed to persist %s", key, exc_info=True)

    @property
    def token(self) -> Optional[str]:
        return self.store.get(TOKEN_KEY)

    @property
    def driver(self) -> Optional[Dict[str, Any]]:
        return self.store.get(DRIVER_KEY)

    @property
    def route_snapshot(self) -> Optional[Dict[str, Any]]:
        return self.store.get(ROUTE_KEY)

    def is_authenticated(self) -> bool:
        return bool(self.token)

    def save_login(self, login_response: Dict[str, Any]) -> None:
        """Store the body returned by POST /auth/login."""
        self._set(TOKEN_KEY, login_response["token"])
        self._set(DRIVER_KEY, login_response.get("driver"))

    def save_route(self, route: Dict[str, Any]) -> None:
        self._set(ROUTE_KEY, route)

    def clear(self) -> None:
        for key in (TOKEN_KEY, DRIVER_KEY, ROUTE_KEY):
            self.store.delete(key)
