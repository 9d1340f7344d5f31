"""
posix-system-mcp Protocol Constants
"""

SERVER_NAME = "posix-system-mcp"

SUPPORTED_PROTOCOL_VERSIONS = ("2025-11-25", "2025-06-18", "2024-11-05")
# The HTTP transport answers initialize with fixed metadata.
HTTP_PROTOCOL_VERSION = "2024-11-05"

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC / MCP error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
PARSE_ERROR = -32700

# Server specific
SERVER_BUSY = -32001


def negotiate_protocol_version(version: str | None) -> str | None:
    if not version:
        return SUPPORTED_PROTOCOL_VERSIONS[0]
    if version in SUPPORTED_PROTOCOL_VERSIONS:
        return version
    return None
