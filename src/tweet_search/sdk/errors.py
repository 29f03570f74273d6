"""Client error kinds.

Every error is call-scoped: it fails one pending call (or one connect
attempt) and never takes the event loop down.
"""

from __future__ import annotations

from typing import Any


class ClientError(Exception):
    """Base class for all client-side failures."""


class NotConnected(ClientError, ConnectionError):
    """A call was issued while the connection is not ready."""


class ConnectionClosed(ClientError, ConnectionError):
    """The connection went away before the call completed."""


class LaunchError(ClientError, ConnectionError):
    """The subordinate process could not be started."""


class ConnectionTimeout(ClientError, TimeoutError):
    """The connection did not become ready in time."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Connection not ready after {timeout:g}s")
        self.timeout = timeout


class RequestTimeout(ClientError, TimeoutError):
    """A single call did not receive its response in time."""

    def __init__(self, method: str, request_id: int, timeout: float) -> None:
        super().__init__(f"Request {request_id} ({method}) timed out after {timeout:g}s")
        self.method = method
        self.request_id = request_id
        self.timeout = timeout


class RemoteError(ClientError):
    """The remote side answered with an error descriptor."""

    def __init__(
        self,
        message: str,
        code: int | str | None = None,
        data: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
