"""Tweet Search CLI.

Default mode is an interactive prompt backed by one MCP server connection.

Usage:
    tweet-search                          # Interactive prompt
    tweet-search search "from:nasa"       # One-shot search
    tweet-search search "AI" --format json
    tweet-search tools                    # List the server's tools
    tweet-search serve --port 3000        # Web UI + API
    tweet-search health                   # Check a running web server
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click
import httpx

from .config import ConfigError, Settings, load_settings
from .query import classify_query, execute_plan
from .results import TweetView, extract_records, partition_records
from .sdk import ClientError, Connection, TweetSearchClient

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"

# The interactive prompt asks for fewer results than the web UI
CLI_MAX_ITEMS = 10

MAX_DISPLAYED = 5

HELP_TEXT = """
Tweet Search CLI
==================================================
Commands:
  help, h     - Show this help message
  quit, q     - Exit the application
  clear, c    - Clear the screen
  <message>   - Send a search query

Search Examples:
  artificial intelligence      - Search for AI-related tweets
  from:elonmusk                - Get tweets from @elonmusk
  @nasa                        - Search for NASA mentions
  bitcoin OR cryptocurrency    - Search with OR operator

Advanced Examples:
  from:nasa since:2024-01-01_00:00:00_UTC until:2024-12-31_23:59:59_UTC
  AI min_faves:100             - AI tweets with 100+ likes
"""


def configure_logging(verbose: bool) -> None:
    """Send all logging to stderr so stdout stays clean for results."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _settings(ctx: click.Context) -> Settings:
    settings: Settings = ctx.obj["settings"]
    try:
        settings.require_token()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Please set your APIFY_TOKEN: export APIFY_TOKEN=your_token_here", err=True)
        sys.exit(1)
    return settings


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Search tweets through the Apify MCP server."""
    configure_logging(verbose)
    try:
        ctx.obj = {"settings": load_settings()}
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    if ctx.invoked_subcommand is None:
        ctx.invoke(repl)


# =============================================================================
# Search Commands
# =============================================================================


@main.command()
@click.argument("message")
@click.option("--max-items", "-n", default=CLI_MAX_ITEMS, show_default=True, help="Maximum tweets to fetch")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def search(ctx: click.Context, message: str, max_items: int, output_format: str) -> None:
    """Run one search and exit.

    Examples:

        tweet-search search "climate change"

        tweet-search search "from:nasa" --format json
    """
    settings = _settings(ctx)

    async def execute() -> Any:
        async with Connection(settings.connection_config()) as connection:
            client = TweetSearchClient(connection, settings.tool_name)
            plan = classify_query(message)
            click.echo(plan.describe(), err=True)
            return await execute_plan(client, plan, max_items=max_items)

    try:
        result = asyncio.run(execute())
    except ClientError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(result, indent=2, ensure_ascii=False, default=str))
        return
    display_response(result)


@main.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def tools(ctx: click.Context, output_format: str) -> None:
    """List the tools exposed by the MCP server."""
    settings = _settings(ctx)

    async def execute() -> Any:
        async with Connection(settings.connection_config()) as connection:
            return await TweetSearchClient(connection, settings.tool_name).list_capabilities()

    try:
        result = asyncio.run(execute())
    except ClientError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(result, indent=2, ensure_ascii=False, default=str))
        return

    tool_list = result.get("tools", []) if isinstance(result, dict) else []
    if not tool_list:
        click.echo("No tools found.")
        return

    for tool in tool_list:
        name = tool.get("name", "?")
        summary = (tool.get("description") or "").strip().split("\n", 1)[0]
        click.echo(f"{name:<50} {truncate(summary, 60)}")
    click.echo(f"\nTotal: {len(tool_list)} tool(s)")


@main.command()
@click.option("--max-items", "-n", default=CLI_MAX_ITEMS, show_default=True, help="Maximum tweets per search")
@click.pass_context
def repl(ctx: click.Context, max_items: int) -> None:
    """Interactive search prompt (default)."""
    settings = _settings(ctx)
    click.clear()
    click.echo(HELP_TEXT)

    try:
        ready = asyncio.run(_repl(settings, max_items))
    except KeyboardInterrupt:
        click.echo("\nDisconnected from MCP server")
        ready = True
    if not ready:
        sys.exit(1)
    click.echo("Goodbye!")


async def _repl(settings: Settings, max_items: int) -> bool:
    """Run the prompt loop. Returns False if the server never became ready."""
    connection = Connection(settings.connection_config())
    connection.add_listener(
        lambda event: click.echo(f"\nMCP server disconnected: {event.reason}", err=True)
    )

    click.echo("Initializing MCP client...")
    try:
        await connection.connect()
        client = TweetSearchClient(connection, settings.tool_name)
        await client.list_capabilities()
    except ClientError as e:
        click.echo(f"Failed to initialize MCP client: {e}", err=True)
        await connection.disconnect()
        return False
    click.echo("MCP client ready!")

    try:
        while True:
            try:
                line = await asyncio.to_thread(
                    click.prompt,
                    "\nEnter your search query (or command)",
                    default="",
                    show_default=False,
                )
            except (EOFError, click.Abort):
                break

            command = line.strip().lower()
            if command in ("quit", "q"):
                break
            if command in ("help", "h"):
                click.echo(HELP_TEXT)
                continue
            if command in ("clear", "c"):
                click.clear()
                click.echo(HELP_TEXT)
                continue
            if not command:
                click.echo("Please enter a search query or command")
                continue

            if not connection.is_connected:
                click.echo("Reconnecting to MCP server...")
                try:
                    await connection.connect()
                except ClientError as e:
                    click.echo(f"Error: {e}", err=True)
                    continue

            plan = classify_query(line)
            click.echo(plan.describe())
            try:
                result = await execute_plan(client, plan, max_items=max_items)
            except ClientError as e:
                click.echo(f"Error: {e}", err=True)
                continue
            display_response(result)
    finally:
        click.echo("Disconnecting from MCP server...")
        await connection.disconnect()
    return True


# =============================================================================
# Server Commands
# =============================================================================


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=3000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the web UI and search API."""
    import uvicorn

    click.echo(f"Starting Tweet Search on http://{host}:{port}", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        "tweet_search.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@main.command()
@click.option("--url", default="http://localhost:3000", help="Server URL")
def health(url: str) -> None:
    """Check a running web server."""

    async def check() -> bool:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url}/health")
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            return False

        if response.status_code != 200:
            click.echo(f"Server returned {response.status_code}", err=True)
            return False
        click.echo(f"Server is healthy: {response.json()}")
        return True

    if not asyncio.run(check()):
        sys.exit(1)


# =============================================================================
# Display
# =============================================================================


def truncate(text: str | None, max_len: int = 50) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def display_response(response: Any) -> None:
    """Render a search result."""
    click.echo("\nResponse from MCP Server:")
    click.echo("=" * 60)

    if not response:
        click.echo("No response received")
        return

    tweets = extract_records(response)
    if tweets is None:
        click.echo(f"Raw response: {json.dumps(response, indent=2, ensure_ascii=False, default=str)}")
        return

    if not tweets:
        click.echo("No tweets found for your search")
        return

    click.echo(f"Found {len(tweets)} tweets:\n")
    real, placeholders = partition_records(tweets)

    if real:
        click.echo(f"Real tweets: {len(real)}")
        click.echo(f"Mock tweets: {len(placeholders)}\n")
        for index, record in enumerate(real[:MAX_DISPLAYED], start=1):
            if not isinstance(record, dict):
                click.echo(f"Tweet {index}: {record}\n")
                continue
            tweet = TweetView.from_record(record)
            click.echo(f"Tweet {index}:")
            click.echo(f"   ID: {tweet.id}")
            click.echo(f"   User: @{tweet.username}")
            click.echo(f"   Text: {tweet.preview()}")
            click.echo(f"   Created: {tweet.created_at}")
            click.echo(f"   Retweets: {tweet.retweets}")
            click.echo(f"   Likes: {tweet.likes}")
            click.echo("")
    else:
        click.echo("Only mock data received. This might indicate:")
        click.echo("1. The search query didn't match any real tweets")
        click.echo("2. Rate limiting or API restrictions")
        click.echo("3. Billing/payment requirements")
        first = placeholders[0] if placeholders else {}
        if isinstance(first, dict):
            click.echo(f"\nFirst mock tweet:\n   Text: {first.get('text', '')}")

    click.echo("=" * 60)
