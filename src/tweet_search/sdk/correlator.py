"""Request/response correlation.

Assigns increasing integer ids to outbound requests, keeps a table of
pending requests keyed by id, and completes the matching future when a
response arrives, the per-request timer fires, or the connection closes.

Everything runs on one event loop, so inserting (call) and removing
(dispatch, expiry, fail_all) never interleave mid-operation. An entry is
popped from the table together with its first completion; any later
completion attempt for the same id finds nothing and is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..protocol import JsonRpcRequest, JsonRpcResponse, is_response
from .errors import ConnectionClosed, RemoteError, RequestTimeout

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0

SendFunc = Callable[[JsonRpcRequest], Awaitable[None]]
ResultHook = Callable[[int, Any], None]


@dataclass
class PendingRequest:
    """One in-flight call."""

    request_id: int
    method: str
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.monotonic)
    timer: asyncio.TimerHandle | None = None


class RequestCorrelator:
    """Maps asynchronous responses back to the call that requested them."""

    def __init__(
        self,
        send: SendFunc,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        on_result: ResultHook | None = None,
    ) -> None:
        self._send = send
        self._timeout = timeout
        self._on_result = on_result
        self._pending: dict[int, PendingRequest] = {}
        self._last_id = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def last_id(self) -> int:
        """Most recently issued id (0 before the first call)."""
        return self._last_id

    def is_pending(self, request_id: int) -> bool:
        return request_id in self._pending

    def _allocate_id(self) -> int:
        self._last_id += 1
        return self._last_id

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and wait for its outcome.

        Raises:
            RemoteError: The response carried an error descriptor
            RequestTimeout: No response before the timer fired
            ConnectionClosed: The connection closed first
        """
        loop = asyncio.get_running_loop()
        request_id = self._allocate_id()
        effective_timeout = self._timeout if timeout is None else timeout

        pending = PendingRequest(
            request_id=request_id,
            method=method,
            future=loop.create_future(),
        )
        self._pending[request_id] = pending
        pending.timer = loop.call_later(effective_timeout, self._expire, request_id, effective_timeout)

        request = JsonRpcRequest(id=request_id, method=method, params=params or {})
        try:
            await self._send(request)
        except BaseException:
            self._discard(request_id)
            raise

        logger.debug(f"Sent request {request_id} ({method})")
        try:
            return await pending.future
        except asyncio.CancelledError:
            self._discard(request_id)
            raise

    def dispatch(self, message: dict[str, Any]) -> bool:
        """Route one inbound object to its pending call.

        Returns True if a pending call was completed. Notifications,
        server-initiated requests and responses for unknown, expired or
        already completed ids are dropped.
        """
        request_id = message.get("id")
        if not is_response(message) or isinstance(request_id, bool) or not isinstance(request_id, int):
            logger.debug(f"Ignoring uncorrelated message: {str(message)[:100]}")
            return False

        pending = self._pending.get(request_id)
        if pending is None:
            logger.debug(f"Dropping response for unknown request: {request_id}")
            return False

        try:
            response = JsonRpcResponse.from_payload(message)
        except ValidationError as e:
            logger.warning(f"Malformed response for request {request_id}: {e}")
            return self._complete(request_id, error=RemoteError(f"Malformed response: {e}"))

        if response.error is not None:
            error = response.error
            return self._complete(
                request_id,
                error=RemoteError(error.message, code=error.code, data=error.data),
            )

        completed = self._complete(request_id, result=response.result)
        if completed and self._on_result is not None:
            self._on_result(request_id, response.result)
        return completed

    def fail_all(self, reason: str = "Connection closed") -> int:
        """Fail every pending call with ConnectionClosed and clear the table."""
        request_ids = list(self._pending)
        failed = 0
        for request_id in request_ids:
            if self._complete(request_id, error=ConnectionClosed(reason)):
                failed += 1
        return failed

    def _expire(self, request_id: int, timeout: float) -> None:
        pending = self._pending.get(request_id)
        if pending is None:
            return
        logger.info(f"Request {request_id} ({pending.method}) timed out after {timeout:g}s")
        self._complete(request_id, error=RequestTimeout(pending.method, request_id, timeout))

    def _complete(
        self,
        request_id: int,
        *,
        result: Any = None,
        error: BaseException | None = None,
    ) -> bool:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return False
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.future.done():
            return False
        if error is not None:
            pending.future.set_exception(error)
        else:
            pending.future.set_result(result)
        return True

    def _discard(self, request_id: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
