"""Connection lifecycle for one MCP server subprocess.

State machine:

    DISCONNECTED --connect()--> CONNECTING --first successful response--> CONNECTED
         ^                          |                                         |
         +------ disconnect() / connect timeout / process exit ---------------+

Readiness is detected rather than assumed: while CONNECTING, the MCP
``initialize`` handshake and a ``tools/list`` probe are issued in the
background, and the first non-error response from either one moves the
connection to CONNECTED.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..protocol import MCP_PROTOCOL_VERSION, JsonRpcNotification, JsonRpcRequest, McpMethod
from .correlator import DEFAULT_REQUEST_TIMEOUT, RequestCorrelator
from .errors import ClientError, ConnectionClosed, ConnectionTimeout, NotConnected
from .transport import StdioTransport

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 15.0


class ConnectionState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ConnectionConfig:
    """Configuration for a Connection."""

    command: list[str]
    env: dict[str, str] | None = None
    working_directory: str | None = None

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    # Readiness detection
    readiness_method: str = McpMethod.TOOLS_LIST.value
    handshake: bool = True
    client_name: str = "tweet-search"
    client_version: str = "0.1.0"
    protocol_version: str = MCP_PROTOCOL_VERSION


@dataclass
class ConnectionEvent:
    """Lifecycle notification delivered to listeners."""

    type: str
    reason: str
    returncode: int | None = None
    pending_failed: int = 0
    data: dict[str, Any] = field(default_factory=dict)


ConnectionListener = Callable[[ConnectionEvent], None]
TransportFactory = Callable[..., StdioTransport]


class Connection:
    """One subordinate-process session.

    Usage:
        async with Connection(config) as connection:
            tools = await connection.call("tools/list")
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        transport_factory: TransportFactory = StdioTransport,
    ) -> None:
        self.config = config
        self._transport_factory = transport_factory
        self._state = ConnectionState.DISCONNECTED
        self._transport: StdioTransport | None = None
        self._correlator: RequestCorrelator | None = None
        self._ready: asyncio.Event | None = None
        self._probes: set[asyncio.Task[Any]] = set()
        self._cleanup_tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[ConnectionListener] = []
        self.server_info: dict[str, Any] | None = None

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def pending_count(self) -> int:
        return self._correlator.pending_count if self._correlator else 0

    def add_listener(self, listener: ConnectionListener) -> Callable[[], None]:
        """Register a lifecycle listener.

        Returns:
            Unsubscribe function
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Spawn the server and wait until it answers.

        Raises:
            ClientError: If not currently disconnected
            LaunchError: If the server command cannot be started
            ConnectionTimeout: If the server is not ready in time
            ConnectionClosed: If the server exits while connecting
        """
        if self._state != ConnectionState.DISCONNECTED:
            raise ClientError(f"Cannot connect while {self._state.value}")

        self._ready = asyncio.Event()
        self.server_info = None
        correlator = RequestCorrelator(
            self._send,
            timeout=self.config.request_timeout,
            on_result=self._on_result,
        )
        self._correlator = correlator
        self._transport = self._transport_factory(
            self.config.command,
            on_message=correlator.dispatch,
            on_exit=self._on_process_exit,
            env=self.config.env,
            working_directory=self.config.working_directory,
        )

        self._state = ConnectionState.CONNECTING
        try:
            await self._transport.start()
        except BaseException:
            self._detach("Launch failed")
            raise

        if self.config.handshake:
            self._start_probe(
                correlator,
                McpMethod.INITIALIZE.value,
                {
                    "protocolVersion": self.config.protocol_version,
                    "capabilities": {},
                    "clientInfo": {
                        "name": self.config.client_name,
                        "version": self.config.client_version,
                    },
                },
            )
        self._start_probe(correlator, self.config.readiness_method, {})

        try:
            await asyncio.wait_for(self._ready.wait(), timeout=self.config.connect_timeout)
        except TimeoutError:
            logger.warning(f"Server not ready after {self.config.connect_timeout:g}s")
            await self._teardown("Connection timed out")
            raise ConnectionTimeout(self.config.connect_timeout) from None
        except BaseException:
            await self._teardown("Connect aborted")
            raise

        if self._state != ConnectionState.CONNECTED:
            await self._teardown("Server exited while connecting")
            raise ConnectionClosed("Server exited while connecting")

        logger.info(f"Connected to MCP server (pid={self._transport.pid if self._transport else None})")

        if self.config.handshake:
            await self.notify(McpMethod.INITIALIZED.value)

    async def disconnect(self) -> None:
        """Terminate the server and fail all pending calls.

        Idempotent, and safe to call before connect().
        """
        await self._teardown("Connection closed by client")

    async def __aenter__(self) -> Connection:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Issue a request and wait for its result.

        Raises:
            NotConnected: If the connection is not ready
            RemoteError: If the server answered with an error
            RequestTimeout: If no response arrived in time
            ConnectionClosed: If the connection closed first
        """
        if self._state != ConnectionState.CONNECTED or self._correlator is None:
            raise NotConnected(f"Cannot call {method}: connection is {self._state.value}")
        return await self._correlator.call(method, params, timeout=timeout)

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a notification (no response expected)."""
        if self._transport is None:
            raise NotConnected(f"Cannot notify {method}: connection is {self._state.value}")
        await self._transport.send(JsonRpcNotification(method=method, params=params or {}))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(self, request: JsonRpcRequest) -> None:
        if self._transport is None:
            raise ConnectionClosed("Connection closed")
        await self._transport.send(request)

    def _start_probe(self, correlator: RequestCorrelator, method: str, params: dict[str, Any]) -> None:
        task = asyncio.create_task(correlator.call(method, params))
        task.add_done_callback(lambda t: self._finish_probe(method, t))
        self._probes.add(task)

    def _finish_probe(self, method: str, task: asyncio.Task[Any]) -> None:
        self._probes.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Readiness probe {method} failed: {error}")
            return
        if method == McpMethod.INITIALIZE.value and isinstance(task.result(), dict):
            self.server_info = task.result()

    def _on_result(self, request_id: int, result: Any) -> None:
        if self._state == ConnectionState.CONNECTING:
            self._state = ConnectionState.CONNECTED
            if self._ready is not None:
                self._ready.set()

    def _on_process_exit(self, returncode: int | None) -> None:
        if self._state == ConnectionState.DISCONNECTED:
            return
        reason = f"Server process exited (code={returncode})"
        transport = self._transport
        failed = self._detach(reason)
        if transport is not None:
            cleanup = asyncio.get_running_loop().create_task(transport.stop())
            self._cleanup_tasks.add(cleanup)
            cleanup.add_done_callback(self._cleanup_tasks.discard)
        self._emit(
            ConnectionEvent(
                type="disconnected",
                reason=reason,
                returncode=returncode,
                pending_failed=failed,
            )
        )

    def _detach(self, reason: str) -> int:
        """Synchronous part of teardown: state, pending calls, readiness waiters."""
        self._state = ConnectionState.DISCONNECTED
        self._transport = None
        failed = 0
        if self._correlator is not None:
            failed = self._correlator.fail_all(reason)
        if self._ready is not None:
            self._ready.set()
        return failed

    async def _teardown(self, reason: str) -> None:
        transport = self._transport
        failed = self._detach(reason)
        if failed:
            logger.info(f"Failed {failed} pending request(s): {reason}")

        for task in list(self._probes):
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError, ClientError):
                await task
        self._probes.clear()

        if transport is not None:
            await transport.stop()

        # Reap transports left behind by an unsolicited exit
        if self._cleanup_tasks:
            await asyncio.gather(*self._cleanup_tasks, return_exceptions=True)

    def _emit(self, event: ConnectionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Error in connection listener for {event.type}")
