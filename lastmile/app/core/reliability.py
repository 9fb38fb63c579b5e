"""
Circuit breaker for outbound calls.

The photo host is the only remote dependency on the delivery update path.
Once it has failed a few times in a row, delivery updates fail fast
instead of waiting on timeouts.
"""

import time
from typing import Any, Awaitable, Callable

CLOSED = "CLOSED"
OPEN = "OPEN"
HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(Exception):
    """Raised instead of calling a dependency that is known to be down."""


class CircuitBreaker:
    """
    Counts consecutive failures of a wrapped coroutine function.

    After ``failure_threshold`` failures the breaker is OPEN and rejects
    calls. Once ``reset_timeout`` seconds have passed since the last failure,
    one trial call is allowed (HALF_OPEN). If it succeeds the breaker closes.
    If it fails the breaker opens again.
    """

    def __init__(self, failure_threshold: int = 5, reset_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.opened_at = 0.0
        self.state = CLOSED

    def _allow_request(self) -> bool:
        if self.state != OPEN:
            return True
        if time.time() - self.opened_at > self.reset_timeout:
            self.state = HALF_OPEN
            return True
        return False

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        if not self._allow_request():
            raise CircuitOpenError(f"Circuit is {OPEN}, retry after {self.reset_timeout}s")

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        if self.failures or self.state == HALF_OPEN:
            self.reset_state()
        return result

    def record_failure(self) -> None:
        self.failures += 1
        self.opened_at = time.time()
        if self.state == HALF_OPEN or self.failures >= self.failure_threshold:
            self.state = OPEN

    def reset_state(self) -> None:
        self.failures = 0
        self.state = CLOSED


photo_host_breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30)
