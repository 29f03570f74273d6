"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from tweet_search.sdk import ConnectionConfig

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_mcp_server.py"


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def fake_server_command() -> list[str]:
    """Command that runs the fake stdio MCP server."""
    return [sys.executable, "-u", str(FAKE_SERVER)]


@pytest.fixture
def make_config(fake_server_command: list[str]) -> Callable[..., ConnectionConfig]:
    """Build a ConnectionConfig for the fake server with short timeouts."""

    def factory(**overrides: Any) -> ConnectionConfig:
        values: dict[str, Any] = {
            "command": fake_server_command,
            "request_timeout": 5.0,
            "connect_timeout": 5.0,
        }
        values.update(overrides)
        return ConnectionConfig(**values)

    return factory
