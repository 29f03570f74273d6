"""JSON-RPC 2.0 message types for the MCP stdio wire format.

One JSON object per line, UTF-8 encoded:
- Request:      {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}}
- Notification: {"jsonrpc": "2.0", "method": "notifications/initialized", "params": {}}
- Response:     {"id": 1, "result": {...}}  or  {"id": 1, "error": {"message": "..."}}
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

# MCP protocol revision announced during the initialize handshake
MCP_PROTOCOL_VERSION = "2024-11-05"


class McpMethod(str, Enum):
    """Remote methods used by this client."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class JsonRpcNotification(BaseModel):
    """JSON-RPC 2.0 notification (no response expected)."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class JsonRpcError(BaseModel):
    """Error descriptor carried by a failed response.

    Only ``message`` is guaranteed by the remote side; anything else it
    sends is preserved as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    message: str = "Unknown error"
    code: Any | None = None
    data: Any | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> JsonRpcError:
        """Build a descriptor from whatever the remote side sent."""
        if not isinstance(raw, dict):
            return cls(message=str(raw))
        fields = {str(k): v for k, v in raw.items()}
        message = fields.pop("message", None)
        fields["message"] = "Unknown error" if message is None else str(message)
        return cls.model_validate(fields)


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response (result XOR error)."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Any | None = None
    id: int | str | None = None
    result: Any | None = None
    error: JsonRpcError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> JsonRpcResponse:
        """Build a response from a decoded line, tolerating odd error shapes."""
        error = payload.get("error")
        if error is not None:
            payload = {**payload, "error": JsonRpcError.from_raw(error)}
        return cls.model_validate(payload)


def is_response(payload: dict[str, Any]) -> bool:
    """Check whether a decoded line looks like a response to one of our requests."""
    return "method" not in payload and ("result" in payload or "error" in payload)
