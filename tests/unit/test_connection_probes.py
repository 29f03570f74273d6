"""Unit tests for Connection readiness probes.

Uses an in-memory transport that answers every request, so the probe
sequence can be checked without a subprocess.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from pydantic import BaseModel

from tweet_search.sdk import Connection, ConnectionConfig, ConnectionState


class EchoTransport:
    """Answers each request on the next loop iteration."""

    instances: list[EchoTransport] = []

    def __init__(self, command: list[str], *, on_message: Any, on_exit: Any = None, **kwargs: Any) -> None:
        self.on_message = on_message
        self.sent: list[dict[str, Any]] = []
        self.stopped = False
        self.pid = 1234
        EchoTransport.instances.append(self)

    async def start(self) -> None:
        pass

    async def send(self, message: BaseModel) -> None:
        data = message.model_dump()
        self.sent.append(data)
        if "id" in data:
            loop = asyncio.get_running_loop()
            loop.call_soon(self.on_message, {"jsonrpc": "2.0", "id": data["id"], "result": {"method": data["method"]}})

    async def stop(self) -> None:
        self.stopped = True


class TestReadinessProbes:
    """Handshake and capability probe."""

    @pytest.mark.asyncio
    async def test_probes_take_first_ids(self) -> None:
        EchoTransport.instances = []
        connection = Connection(ConnectionConfig(command=["unused"]), transport_factory=EchoTransport)

        await connection.connect()
        assert connection.state == ConnectionState.CONNECTED

        transport = EchoTransport.instances[0]
        requests = [m for m in transport.sent if "id" in m]
        assert [(m["id"], m["method"]) for m in requests] == [(1, "initialize"), (2, "tools/list")]
        assert transport.sent[-1]["method"] == "notifications/initialized"

        result = await connection.call("tools/call", {"name": "x"})
        assert result == {"method": "tools/call"}
        assert transport.sent[-1]["id"] == 3

        await connection.disconnect()
        assert transport.stopped

    @pytest.mark.asyncio
    async def test_custom_readiness_method_without_handshake(self) -> None:
        EchoTransport.instances = []
        config = ConnectionConfig(command=["unused"], handshake=False, readiness_method="ping")
        async with Connection(config, transport_factory=EchoTransport) as connection:
            assert connection.is_connected
            sent = EchoTransport.instances[0].sent
            assert [m["method"] for m in sent] == ["ping"]
