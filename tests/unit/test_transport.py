"""Unit tests for stdio transport framing.

feed_data() is exercised without a subprocess; launch and send paths use
commands that cannot run.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from tweet_search.protocol import JsonRpcRequest
from tweet_search.sdk import (
    ConnectionClosed,
    LaunchError,
    RemoteError,
    RequestCorrelator,
    StdioTransport,
)


def make_transport() -> tuple[StdioTransport, list[dict[str, Any]]]:
    received: list[dict[str, Any]] = []
    transport = StdioTransport(["unused"], on_message=received.append)
    return transport, received


# =============================================================================
# Framing
# =============================================================================


class TestFraming:
    """Bytes to JSON objects."""

    def test_single_line(self) -> None:
        """One complete line yields one message."""
        transport, received = make_transport()
        transport.feed_data(b'{"id": 1, "result": "ok"}\n')
        assert received == [{"id": 1, "result": "ok"}]

    def test_multiple_lines_in_one_chunk(self) -> None:
        """Several lines in one chunk are delivered in order."""
        transport, received = make_transport()
        transport.feed_data(b'{"id": 1, "result": 1}\n{"id": 2, "result": 2}\n')
        assert [m["id"] for m in received] == [1, 2]

    def test_line_split_across_chunks(self) -> None:
        """A partial line is buffered until its newline arrives."""
        transport, received = make_transport()
        assert transport.feed_data(b'{"id": 1, "res') == []
        assert received == []
        transport.feed_data(b'ult": "ok"}\n{"id"')
        assert received == [{"id": 1, "result": "ok"}]
        transport.feed_data(b': 2, "result": "again"}\n')
        assert received[-1] == {"id": 2, "result": "again"}

    def test_multibyte_character_split_across_chunks(self) -> None:
        """UTF-8 sequences split between reads decode intact."""
        transport, received = make_transport()
        data = '{"id": 1, "result": "café ☕"}\n'.encode()
        split = data.index(b"\xc3") + 1
        transport.feed_data(data[:split])
        transport.feed_data(data[split:])
        assert received == [{"id": 1, "result": "café ☕"}]

    def test_noise_lines_dropped(self) -> None:
        """Non-JSON output and non-object JSON never reach the callback."""
        transport, received = make_transport()
        transport.feed_data(
            b"Starting server...\n"
            b"\n"
            b"[1, 2, 3]\n"
            b'"just a string"\n'
            b'{"id": 7, "result": null}\n'
            b"{not json\n"
        )
        assert received == [{"id": 7, "result": None}]

    def test_crlf_line_endings(self) -> None:
        """Trailing carriage returns are ignored."""
        transport, received = make_transport()
        transport.feed_data(b'{"id": 1, "result": true}\r\n')
        assert received == [{"id": 1, "result": True}]

    def test_failing_callback_does_not_strand_later_lines(self) -> None:
        """A callback error on one line still delivers the rest of the chunk."""
        received: list[dict[str, Any]] = []

        def on_message(message: dict[str, Any]) -> None:
            if message["id"] == 1:
                raise RuntimeError("bad handler")
            received.append(message)

        transport = StdioTransport(["unused"], on_message=on_message)
        transport.feed_data(b'{"id": 1, "result": 1}\n{"id": 2, "result": 2}\n')

        assert received == [{"id": 2, "result": 2}]
        assert transport.feed_data(b"") == []

    @pytest.mark.asyncio
    async def test_malformed_error_and_valid_result_in_one_chunk(self) -> None:
        """Each call gets its own outcome when both responses share a chunk."""
        requests: list[JsonRpcRequest] = []

        async def send(request: JsonRpcRequest) -> None:
            requests.append(request)

        correlator = RequestCorrelator(send, timeout=5)
        transport = StdioTransport(["unused"], on_message=correlator.dispatch)

        first = asyncio.create_task(correlator.call("tools/call"))
        second = asyncio.create_task(correlator.call("tools/list"))
        while len(requests) < 2:
            await asyncio.sleep(0)

        transport.feed_data(
            b'{"id": 1, "error": {"message": "x", "code": {"n": 1}}}\n'
            b'{"id": 2, "result": "ok"}\n'
        )

        with pytest.raises(RemoteError) as exc_info:
            await first
        assert exc_info.value.message == "x"
        assert exc_info.value.code == {"n": 1}
        assert await second == "ok"
        assert correlator.pending_count == 0

    def test_str_chunks_accepted(self) -> None:
        """Text chunks are encoded before framing."""
        transport, received = make_transport()
        messages = transport.feed_data('{"method": "notifications/progress"}\n')
        assert messages == received == [{"method": "notifications/progress"}]


# =============================================================================
# Process Lifecycle
# =============================================================================


class TestLifecycle:
    """Launch, send and stop without a live process."""

    @pytest.mark.asyncio
    async def test_launch_error(self) -> None:
        """A missing executable raises LaunchError."""
        transport = StdioTransport(["definitely-not-a-real-command-xyz"], on_message=lambda m: None)
        with pytest.raises(LaunchError):
            await transport.start()
        assert transport.pid is None
        assert not transport.is_running

    @pytest.mark.asyncio
    async def test_send_before_start(self) -> None:
        """Writing without a process raises ConnectionClosed."""
        transport, _ = make_transport()
        with pytest.raises(ConnectionClosed):
            await transport.send(JsonRpcRequest(id=1, method="tools/list"))

    @pytest.mark.asyncio
    async def test_stop_before_start(self) -> None:
        """stop() is safe without a process and safe to repeat."""
        transport, _ = make_transport()
        await transport.stop()
        await transport.stop()
        assert not transport.is_running
