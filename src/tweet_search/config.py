"""Settings loaded from the environment (and an optional .env file)."""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .sdk import ConnectionConfig
from .sdk.connection import DEFAULT_CONNECT_TIMEOUT
from .sdk.correlator import DEFAULT_REQUEST_TIMEOUT

TOKEN_ENV = "APIFY_TOKEN"
ACTOR_ENV = "TWEET_SEARCH_ACTOR"
COMMAND_ENV = "TWEET_SEARCH_SERVER_COMMAND"
REQUEST_TIMEOUT_ENV = "TWEET_SEARCH_REQUEST_TIMEOUT"
CONNECT_TIMEOUT_ENV = "TWEET_SEARCH_CONNECT_TIMEOUT"
MAX_ITEMS_ENV = "TWEET_SEARCH_MAX_ITEMS"

DEFAULT_ACTOR = "kaitoeasyapi/twitter-x-data-tweet-scraper-pay-per-result-cheapest"
DEFAULT_MAX_ITEMS = 20


class ConfigError(Exception):
    """Required configuration is missing or malformed."""


def default_server_command(actor_id: str) -> list[str]:
    """Command that runs the Apify MCP server for one actor."""
    return ["npx", "-y", "@apify/actors-mcp-server", "--actors", actor_id]


@dataclass
class Settings:
    """Application settings."""

    token: str | None = None
    actor_id: str = DEFAULT_ACTOR
    server_command: list[str] = field(default_factory=list)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    max_items: int = DEFAULT_MAX_ITEMS

    def __post_init__(self) -> None:
        if not self.server_command:
            self.server_command = default_server_command(self.actor_id)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        actor_id = env.get(ACTOR_ENV) or DEFAULT_ACTOR
        command = env.get(COMMAND_ENV)
        return cls(
            token=env.get(TOKEN_ENV) or None,
            actor_id=actor_id,
            server_command=shlex.split(command) if command else [],
            request_timeout=_float(env, REQUEST_TIMEOUT_ENV, DEFAULT_REQUEST_TIMEOUT),
            connect_timeout=_float(env, CONNECT_TIMEOUT_ENV, DEFAULT_CONNECT_TIMEOUT),
            max_items=_int(env, MAX_ITEMS_ENV, DEFAULT_MAX_ITEMS),
        )

    @property
    def tool_name(self) -> str:
        """MCP tool name the Apify server registers for the actor."""
        return self.actor_id.replace("/", "-slash-")

    def require_token(self) -> str:
        if not self.token:
            raise ConfigError(f"{TOKEN_ENV} environment variable is required")
        return self.token

    def connection_config(self) -> ConnectionConfig:
        return ConnectionConfig(
            command=list(self.server_command),
            env={TOKEN_ENV: self.require_token()},
            request_timeout=self.request_timeout,
            connect_timeout=self.connect_timeout,
        )


def load_settings() -> Settings:
    """Load .env (if present) into the process environment, then read settings."""
    load_dotenv()
    return Settings.from_env()


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e
