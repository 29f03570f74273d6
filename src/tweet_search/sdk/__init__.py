"""Tweet search SDK - MCP client over a stdio subprocess.

Layers, leaves first:
- StdioTransport: owns the server subprocess, frames JSON lines
- RequestCorrelator: ids, pending table, timeouts
- Connection: connect/disconnect lifecycle and readiness detection
- TweetSearchClient: tools/list, tools/call and search helpers
"""

from .client import DEFAULT_SEARCH_OPTIONS, TweetSearchClient
from .connection import (
    Connection,
    ConnectionConfig,
    ConnectionEvent,
    ConnectionState,
)
from .correlator import PendingRequest, RequestCorrelator
from .errors import (
    ClientError,
    ConnectionClosed,
    ConnectionTimeout,
    LaunchError,
    NotConnected,
    RemoteError,
    RequestTimeout,
)
from .transport import StdioTransport

__all__ = [
    # Client
    "TweetSearchClient",
    "DEFAULT_SEARCH_OPTIONS",
    # Lifecycle
    "Connection",
    "ConnectionConfig",
    "ConnectionEvent",
    "ConnectionState",
    # Correlation & transport
    "RequestCorrelator",
    "PendingRequest",
    "StdioTransport",
    # Errors
    "ClientError",
    "ConnectionClosed",
    "ConnectionTimeout",
    "LaunchError",
    "NotConnected",
    "RemoteError",
    "RequestTimeout",
]
