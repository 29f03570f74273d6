"""Search dialog endpoint.

Each request owns a fresh Connection: connect, classify the message,
search, and always disconnect before answering.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..config import ConfigError, Settings
from ..query import classify_query, execute_plan
from ..results import extract_records, partition_records
from ..sdk import Connection, ConnectionConfig, TweetSearchClient

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[ConnectionConfig], Connection]

ERROR_SUGGESTIONS = [
    "Check your APIFY_TOKEN is valid",
    "Verify MCP server is accessible",
    "Try a different search query",
    "Check your internet connection",
]


class DialogRequest(BaseModel):
    """Request to run a search."""

    message: str | None = None


async def dialog(request: Request) -> JSONResponse:
    """Run one search and return the records with metadata."""
    try:
        body = await request.json() if await request.body() else {}
        req = DialogRequest.model_validate(body if isinstance(body, dict) else {})
    except (ValueError, ValidationError):
        req = DialogRequest()

    message = (req.message or "").strip()
    if not message:
        return JSONResponse({"error": "Missing message in request body"}, status_code=400)

    settings: Settings = request.app.state.settings
    connection_factory: ConnectionFactory = request.app.state.connection_factory

    try:
        config = settings.connection_config()
    except ConfigError:
        return JSONResponse({"error": "APIFY_TOKEN not configured"}, status_code=500)

    connection = connection_factory(config)
    try:
        logger.info("Initializing MCP client for web request")
        await connection.connect()

        client = TweetSearchClient(connection, settings.tool_name)
        plan = classify_query(message)
        logger.info(plan.describe())
        result = await execute_plan(client, plan, max_items=settings.max_items)
    except Exception as e:
        logger.exception(f"MCP API error: {e}")
        status = 504 if isinstance(e, TimeoutError) else 500
        return JSONResponse(
            {
                "error": str(e),
                "details": "Failed to get data from MCP server",
                "suggestions": ERROR_SUGGESTIONS,
            },
            status_code=status,
        )
    finally:
        await connection.disconnect()

    tweets = extract_records(result, wrap_scalar=True) or []
    real, placeholders = partition_records(tweets)
    logger.info(f"Results: {len(real)} real tweets, {len(placeholders)} mock tweets")

    return JSONResponse(
        {
            "response": tweets,
            "metadata": _metadata(message, tweets, real, placeholders),
        }
    )


def _metadata(
    message: str,
    tweets: list[Any],
    real: list[Any],
    placeholders: list[Any],
) -> dict[str, Any]:
    return {
        "total": len(tweets),
        "realTweets": len(real),
        "mockTweets": len(placeholders),
        "searchQuery": message,
        "timestamp": datetime.now(UTC).isoformat(),
        "source": "MCP_SERVER",
    }


dialog_routes = [
    Route("/api/dialog", dialog, methods=["POST"]),
]
