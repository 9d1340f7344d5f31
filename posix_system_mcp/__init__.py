"""
posix-system-mcp: host telemetry over MCP (stdio and HTTP)
"""

from posix_system_mcp.mcp.protocol import SERVER_NAME
from posix_system_mcp.sdk import (
    AsyncSystemMcpClient,
    SystemMcpAPIError,
    SystemMcpClient,
    SystemMcpClientError,
    SystemMcpConnectionError,
)
from posix_system_mcp.version import __version__

__all__ = [
    "__version__",
    "SERVER_NAME",
    "SystemMcpClient",
    "AsyncSystemMcpClient",
    "SystemMcpClientError",
    "SystemMcpConnectionError",
    "SystemMcpAPIError",
]
