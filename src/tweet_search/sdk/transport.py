"""Stdio transport for the subordinate MCP server process.

Launches the server as a subprocess and communicates via newline-delimited
JSON over its stdin/stdout. The server is free to interleave diagnostic
text with protocol messages on stdout; anything that is not a JSON object
is dropped. stderr is forwarded to the log.

Wire format:
- Outbound: JSON object + newline to subprocess stdin
- Inbound: JSON object + newline from subprocess stdout
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from .errors import ConnectionClosed, LaunchError

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
NEWLINE = b"\n"

# Size of each stdout read; framing does not depend on it
READ_CHUNK_SIZE = 64 * 1024

# Grace period between terminate() and kill()
TERMINATE_TIMEOUT = 5.0

MessageCallback = Callable[[dict[str, Any]], Any]
ExitCallback = Callable[[int | None], None]


class StdioTransport:
    """Owns one subprocess and frames its byte streams into JSON objects."""

    def __init__(
        self,
        command: list[str],
        *,
        on_message: MessageCallback,
        on_exit: ExitCallback | None = None,
        env: dict[str, str] | None = None,
        working_directory: str | None = None,
    ) -> None:
        self.command = command
        self.env = env
        self.working_directory = working_directory
        self._on_message = on_message
        self._on_exit = on_exit
        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._buffer = bytearray()
        self._write_lock = asyncio.Lock()
        self._stopping = False

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None and not self._stopping

    async def start(self) -> None:
        """Launch the subprocess and start the reader tasks."""
        env = None
        if self.env:
            env = {**os.environ, **self.env}

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.working_directory,
                env=env,
            )
        except OSError as e:
            raise LaunchError(f"Failed to launch {self.command[0]!r}: {e}") from e

        self._reader_task = asyncio.create_task(self._read_stdout())
        self._stderr_task = asyncio.create_task(self._read_stderr())
        logger.info(f"Launched subprocess: {' '.join(self.command)} (pid={self._process.pid})")

    async def send(self, message: BaseModel) -> None:
        """Write one message as a JSON line to stdin."""
        if not self.is_running or not self._process or not self._process.stdin:
            raise ConnectionClosed("Process not running")

        line = message.model_dump_json().encode(ENCODING) + NEWLINE
        async with self._write_lock:
            try:
                self._process.stdin.write(line)
                await self._process.stdin.drain()
            except (BrokenPipeError, ConnectionResetError) as e:
                raise ConnectionClosed(f"Write to subprocess failed: {e}") from e

    def feed_data(self, chunk: bytes | str) -> list[dict[str, Any]]:
        """Accumulate output and forward every complete JSON object line.

        Incomplete trailing data stays buffered until the next chunk.
        Returns the objects that were forwarded.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode(ENCODING)
        self._buffer.extend(chunk)

        messages: list[dict[str, Any]] = []
        while True:
            index = self._buffer.find(NEWLINE)
            if index < 0:
                break
            raw = bytes(self._buffer[:index])
            del self._buffer[: index + 1]

            message = self._parse_line(raw)
            if message is None:
                continue
            messages.append(message)
            try:
                self._on_message(message)
            except Exception:
                logger.exception(f"Error dispatching message: {str(message)[:100]}")
        return messages

    @staticmethod
    def _parse_line(raw: bytes) -> dict[str, Any] | None:
        line = raw.decode(ENCODING, errors="replace").strip()
        if not line:
            return None
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping non-JSON line: {line[:80]}")
            return None
        if not isinstance(data, dict):
            logger.debug(f"Skipping non-object JSON line: {line[:80]}")
            return None
        return data

    async def _read_stdout(self) -> None:
        process = self._process
        if not process or not process.stdout:
            return

        while True:
            chunk = await process.stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            self.feed_data(chunk)

        returncode = await process.wait()
        if self._stopping:
            return
        logger.warning(f"Subprocess exited unexpectedly (pid={process.pid}, code={returncode})")
        if self._on_exit is not None:
            self._on_exit(returncode)

    async def _read_stderr(self) -> None:
        process = self._process
        if not process or not process.stderr:
            return

        while True:
            line = await process.stderr.readline()
            if not line:
                break
            text = line.decode(ENCODING, errors="replace").strip()
            if text:
                logger.debug(f"[server stderr] {text}")

    async def stop(self) -> None:
        """Terminate the subprocess. Safe to call repeatedly or before start()."""
        if self._stopping:
            return
        self._stopping = True

        current = asyncio.current_task()
        for task in (self._reader_task, self._stderr_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        process = self._process
        if process is None:
            return

        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()

        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_TIMEOUT)
            except TimeoutError:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            logger.info(f"Subprocess terminated (pid={process.pid})")
