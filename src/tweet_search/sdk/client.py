"""Capability invoker.

Named MCP operations layered on Connection.call(), plus tweet search
helpers that shape arguments for the scraper actor's tool.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..protocol import McpMethod
from .connection import Connection

DEFAULT_SEARCH_OPTIONS: dict[str, Any] = {
    "maxItems": 20,
    "queryType": "Latest",
}


class TweetSearchClient:
    """Tweet search operations over an explicitly owned Connection.

    Search options are merged as defaults < operation arguments < caller
    options, so anything the caller passes wins.
    """

    def __init__(
        self,
        connection: Connection,
        tool_name: str,
        *,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.connection = connection
        self.tool_name = tool_name
        self.defaults = dict(DEFAULT_SEARCH_OPTIONS if defaults is None else defaults)

    async def list_capabilities(self) -> Any:
        """List the tools the server exposes."""
        return await self.connection.call(McpMethod.TOOLS_LIST.value, {})

    async def invoke_capability(self, name: str, arguments: dict[str, Any]) -> Any:
        """Call a tool by name."""
        return await self.connection.call(
            McpMethod.TOOLS_CALL.value,
            {"name": name, "arguments": arguments},
        )

    async def search_tweets(self, query: str, **options: Any) -> Any:
        """Search tweets containing free text."""
        return await self._search({"searchTerms": [query]}, options)

    async def search_tweets_by_user(self, username: str, **options: Any) -> Any:
        """Fetch tweets posted by one account."""
        return await self._search({"from": username.lstrip("@")}, options)

    async def search_tweets_by_terms(self, terms: Iterable[str], **options: Any) -> Any:
        """Search with raw advanced-search terms (since:, until:, min_faves:, ...)."""
        return await self._search({"searchTerms": list(terms)}, options)

    def build_arguments(self, arguments: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
        return {**self.defaults, **arguments, **options}

    async def _search(self, arguments: dict[str, Any], options: dict[str, Any]) -> Any:
        return await self.invoke_capability(self.tool_name, self.build_arguments(arguments, options))
