"""
Errors raised by the driver API client.

Transient errors (no connectivity, 5xx) make mutating calls queue for
later; everything else is surfaced to the caller.
"""

from typing import Any, Optional


class DriverApiError(Exception):
    """Base class for driver client failures."""

    transient = False

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ConnectivityError(DriverApiError):
    """The request never reached the server (DNS, refused, timeout)."""

    transient = True


class OfflineError(ConnectivityError):
    """The device is known to be offline; no request was attempted."""

    def __init__(self, message: str = "No internet connection"):
        super().__init__(message)


class ServerError(DriverApiError):
    """5xx response."""

    transient = True


class AuthorizationError(DriverApiError):
    """401/403: token missing, expired, revoked, or action not allowed."""


class RequestRejectedError(DriverApiError):
    """400/404/409/422: the server understood and refused the request."""


def error_for_status(status_code: int, message: str, detail: Any = None) -> DriverApiError:
    """Map an HTTP error status to the matching client error."""
    if status_code >= 500:
        return ServerError(message, status_code, detail)
    if status_code in (401, 403):
        return AuthorizationError(message, status_code, detail)
    return RequestRejectedError(message, status_code, detail)
