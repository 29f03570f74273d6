"""Tweet Search - search tweets through the Apify MCP server.

Provides:
- sdk: stdio MCP client (transport, correlation, connection, client)
- cli: interactive prompt and one-shot commands
- app: web UI and JSON search API
"""

from .sdk import (
    ClientError,
    Connection,
    ConnectionConfig,
    TweetSearchClient,
)

__version__ = "0.1.0"

__all__ = [
    "ClientError",
    "Connection",
    "ConnectionConfig",
    "TweetSearchClient",
    "__version__",
]
