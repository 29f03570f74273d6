"""Unit tests for TweetSearchClient argument shaping."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from tweet_search.sdk import DEFAULT_SEARCH_OPTIONS, NotConnected, TweetSearchClient

TOOL = "apidojo-slash-tweet-scraper"


@pytest.fixture
def connection() -> MagicMock:
    conn = MagicMock()
    conn.call = AsyncMock(return_value={"content": []})
    return conn


class TestCapabilities:
    """tools/list and tools/call."""

    @pytest.mark.asyncio
    async def test_list_capabilities(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL)
        result = await client.list_capabilities()

        connection.call.assert_called_once_with("tools/list", {})
        assert result == {"content": []}

    @pytest.mark.asyncio
    async def test_invoke_capability(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL)
        await client.invoke_capability("some-tool", {"a": 1})

        connection.call.assert_called_once_with(
            "tools/call",
            {"name": "some-tool", "arguments": {"a": 1}},
        )

    @pytest.mark.asyncio
    async def test_errors_propagate(self, connection: MagicMock) -> None:
        """Connection errors reach the caller unchanged."""
        connection.call.side_effect = NotConnected("not ready")
        client = TweetSearchClient(connection, TOOL)
        with pytest.raises(NotConnected):
            await client.list_capabilities()


class TestSearch:
    """Search helpers merge defaults < arguments < options."""

    @pytest.mark.asyncio
    async def test_search_tweets_defaults(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL)
        await client.search_tweets("climate change")

        connection.call.assert_called_once_with(
            "tools/call",
            {
                "name": TOOL,
                "arguments": {
                    "maxItems": 20,
                    "queryType": "Latest",
                    "searchTerms": ["climate change"],
                },
            },
        )

    @pytest.mark.asyncio
    async def test_search_by_user_strips_at(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL)
        await client.search_tweets_by_user("@nasa", maxItems=10)

        arguments = connection.call.call_args.args[1]["arguments"]
        assert arguments["from"] == "nasa"
        assert arguments["maxItems"] == 10

    @pytest.mark.asyncio
    async def test_search_by_terms(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL)
        await client.search_tweets_by_terms(("from:nasa", "since:2024-01-01"))

        arguments = connection.call.call_args.args[1]["arguments"]
        assert arguments["searchTerms"] == ["from:nasa", "since:2024-01-01"]

    @pytest.mark.asyncio
    async def test_caller_options_win(self, connection: MagicMock) -> None:
        """Caller options override both defaults and operation arguments."""
        client = TweetSearchClient(connection, TOOL)
        await client.search_tweets("ai", queryType="Top", searchTerms=["override"])

        arguments = connection.call.call_args.args[1]["arguments"]
        assert arguments["queryType"] == "Top"
        assert arguments["searchTerms"] == ["override"]

    def test_custom_defaults(self, connection: MagicMock) -> None:
        client = TweetSearchClient(connection, TOOL, defaults={"maxItems": 5})
        assert client.build_arguments({"from": "x"}, {}) == {"maxItems": 5, "from": "x"}

    def test_defaults_not_shared(self, connection: MagicMock) -> None:
        """Mutating one client's defaults leaves the module constant alone."""
        client = TweetSearchClient(connection, TOOL)
        client.defaults["maxItems"] = 1
        assert DEFAULT_SEARCH_OPTIONS["maxItems"] == 20
