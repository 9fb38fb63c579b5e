"""
Network connectivity monitor.

Holds the last known online/offline state and passes every connectivity
event on to listeners, so a repeated "online" can retrigger a replay. The
platform feeds events in through set_online(); refresh() probes the API
health endpoint instead.
"""

import logging
from typing import Callable, List

import httpx

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class NetworkMonitor:
    """Boolean connectivity with event notification."""

    def __init__(self, initial: bool = True):
        self._online = initial
        self._listeners: List[Listener] = []

    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: Listener) -> None:
        """Register a listener and call it right away with the current state."""
        self._listeners.append(listener)
        listener(self._online)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_online(self, online: bool) -> None:
        """Record a platform connectivity event and notify every listener."""
        online = bool(online)
        if online != self._online:
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        self._online = online

        # Listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(online)

    async def refresh(self, client: httpx.AsyncClient, path: str = "/health") -> bool:
        """Probe the API once and record whether it answered."""
        try:
            response = await client.get(path)
            online = response.status_code < 500
        except httpx.TransportError:
            online = False

        self.set_online(online)
        return online
