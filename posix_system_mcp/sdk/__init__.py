"""
posix-system-mcp SDK public exports.
"""

from posix_system_mcp.sdk.client import AsyncSystemMcpClient, SystemMcpClient
from posix_system_mcp.sdk.errors import (
    SystemMcpAPIError,
    SystemMcpClientError,
    SystemMcpConnectionError,
)

__all__ = [
    "SystemMcpClient",
    "AsyncSystemMcpClient",
    "SystemMcpClientError",
    "SystemMcpConnectionError",
    "SystemMcpAPIError",
]
