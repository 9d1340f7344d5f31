"""
JSON-RPC method handlers shared by the stdio and HTTP transports.

Handlers report through `send_result_fn(msg_id, result)` and
`send_error_fn(msg_id, code, message)` so each transport decides how a
response leaves the process.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from posix_system_mcp.core.errors import ErrorKind
from posix_system_mcp.core.types import Envelope
from posix_system_mcp.mcp.definitions import tools_schemas
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.protocol import (
    HTTP_PROTOCOL_VERSION,
    INVALID_PARAMS,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    SERVER_NAME,
    negotiate_protocol_version,
)
from posix_system_mcp.mcp.state import SessionState
from posix_system_mcp.mcp.utils import DEFAULT_TOOL_RESPONSE_MAX_CHARS, format_payload_text
from posix_system_mcp.version import __version__

logger = logging.getLogger("PosixSystemMCP.mcp.handlers")

SendResult = Callable[[Any, Dict[str, Any]], None]
SendError = Callable[..., None]

INSTRUCTIONS = (
    "posix-system-mcp server. Read-only host telemetry: system facts, CPU, memory, "
    "disk, network interfaces, processes and load average. All tools are safe to call repeatedly."
)


def result_message(msg_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def error_message(msg_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "error": error}


def server_info() -> Dict[str, str]:
    return {"name": SERVER_NAME, "version": __version__}


def handle_initialize(
    msg_id: Any,
    params: Dict[str, Any],
    session: SessionState,
    send_error_fn: SendError,
    send_result_fn: SendResult,
) -> None:
    """Handle protocol negotiation for a stdio session."""
    requested_version = params.get("protocolVersion")
    negotiated_version = negotiate_protocol_version(requested_version)

    if not negotiated_version:
        send_error_fn(msg_id, INVALID_PARAMS, f"Unsupported protocol version {requested_version}")
        return

    session.negotiated = True
    session.protocol_version = negotiated_version
    client_info = params.get("clientInfo")
    session.client_info = client_info if isinstance(client_info, dict) else {}
    logger.info(
        "Negotiated protocol %s with client %s",
        negotiated_version,
        session.client_info.get("name", "unknown"),
    )

    send_result_fn(msg_id, {
        "protocolVersion": negotiated_version,
        "capabilities": {"tools": {"listChanged": False}},
        "serverInfo": server_info(),
        "instructions": INSTRUCTIONS,
    })


def handle_http_initialize(msg_id: Any, send_result_fn: SendResult) -> None:
    """HTTP initialize carries no session; the metadata is fixed."""
    send_result_fn(msg_id, {
        "protocolVersion": HTTP_PROTOCOL_VERSION,
        "capabilities": {"tools": {}},
        "serverInfo": server_info(),
    })


def handle_list_tools(msg_id: Any, send_result_fn: SendResult) -> None:
    send_result_fn(msg_id, {"tools": tools_schemas()})


def validate_tools_call_params(params: Any) -> Tuple[Optional[Tuple[str, Dict[str, Any]]], Optional[str]]:
    """
    Extract (name, arguments) from tools/call params.

    Returns (None, reason) when the params cannot name a tool. Arguments that
    are missing, null or not an object become an empty bag.
    """
    if not isinstance(params, dict):
        return None, "Invalid params: tools/call params must be an object"
    name = params.get("name")
    if not isinstance(name, str) or not name:
        return None, "Invalid params: tools/call requires non-empty string name"
    arguments = params.get("arguments")
    if not isinstance(arguments, dict):
        arguments = {}
    return (name, arguments), None


def envelope_to_tool_result(envelope: Envelope, max_chars: int = DEFAULT_TOOL_RESPONSE_MAX_CHARS) -> Dict[str, Any]:
    """Render a dispatch envelope as an MCP tools/call result."""
    if envelope.ok:
        payload = envelope.payload or {}
        return {
            "content": [
                {"type": "text", "text": envelope.message},
                {"type": "text", "text": format_payload_text(payload, envelope.operation, max_chars)},
            ],
            "structuredContent": payload,
            "isError": False,
        }
    error = envelope.error
    return {
        "content": [{"type": "text", "text": f"Error: {error.message}"}],
        "structuredContent": {
            "error": {"classification": error.classification.value, "message": error.message},
        },
        "isError": True,
    }


def handle_call_tool(
    msg_id: Any,
    params: Any,
    dispatcher: Dispatcher,
    send_error_fn: SendError,
    send_result_fn: SendResult,
    *,
    max_chars: int = DEFAULT_TOOL_RESPONSE_MAX_CHARS,
    failures_as_errors: bool = False,
) -> None:
    """
    Dispatch one tools/call.

    An unknown tool is always a JSON-RPC -32601 error. Collection failures
    are an `isError` tool result, or with `failures_as_errors` (the HTTP
    transport) a -32601 error carrying the classification in `error.data`.
    """
    validated, reason = validate_tools_call_params(params)
    if validated is None:
        send_error_fn(msg_id, INVALID_PARAMS, reason)
        return
    name, arguments = validated

    envelope = dispatcher.dispatch(name, arguments)
    if not envelope.ok:
        error = envelope.error
        if error.classification == ErrorKind.UNKNOWN_OPERATION:
            send_error_fn(msg_id, METHOD_NOT_FOUND, error.message)
            return
        if failures_as_errors:
            send_error_fn(msg_id, METHOD_NOT_FOUND, error.message, {"classification": error.classification.value})
            return
    send_result_fn(msg_id, envelope_to_tool_result(envelope, max_chars))
