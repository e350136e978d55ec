"""JSON-RPC 2.0 envelope helpers for the MCP stdio server."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
# MCP: request received before the initialize handshake completed
SERVER_NOT_INITIALIZED = -32002

NOT_INITIALIZED_MESSAGE = "Server not initialized. Send initialize request first."

RequestId = Union[str, int, None]


@dataclass
class JSONRPCRequest:
    """A decoded incoming envelope; ``is_notification`` when it carried no id."""
    method: str
    id: RequestId = None
    params: Optional[Dict[str, Any]] = None
    is_notification: bool = False


@dataclass(frozen=True)
class Outcome:
    """Result of a handler or tool: exactly one of ``value`` or ``error``.

    Handlers report expected failures (unknown tool, missing argument) by
    returning ``Outcome.failure`` instead of raising.
    """
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> "Outcome":
        return cls(error=message)

    @property
    def ok(self) -> bool:
        return self.error is None


class InvalidEnvelope(Exception):
    """The line decoded as JSON but does not follow the envelope grammar.

    No request identity is recovered from such a line; it is answered like any
    other framing error, with a parse error and ``id: null``.
    """


def parse_envelope(data: Any) -> JSONRPCRequest:
    """Validate a decoded JSON value as a request or notification.

    An empty ``params`` list is read as no params.
    """
    if not isinstance(data, dict):
        raise InvalidEnvelope("expected a JSON object")

    if data.get("jsonrpc") != JSONRPC_VERSION:
        raise InvalidEnvelope("jsonrpc must be \"2.0\"")

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise InvalidEnvelope("missing method")

    params = data.get("params")
    if params == []:
        params = None
    if params is not None and not isinstance(params, dict):
        raise InvalidEnvelope("params must be an object")

    return JSONRPCRequest(
        method=method,
        id=data.get("id"),
        params=params,
        is_notification="id" not in data,
    )


def create_response(request_id: RequestId, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def create_error(request_id: RequestId, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def text_content(text: str) -> Dict[str, Any]:
    """``tools/call`` result carrying a single text block."""
    return {"content": [{"type": "text", "text": text}]}
