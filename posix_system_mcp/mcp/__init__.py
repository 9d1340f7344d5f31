from posix_system_mcp.mcp.definitions import OPERATIONS, get_operation, tools_schemas
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.server import McpServer
from posix_system_mcp.mcp.state import RuntimeConfigHolder

__all__ = [
    "OPERATIONS",
    "Dispatcher",
    "McpServer",
    "RuntimeConfigHolder",
    "get_operation",
    "tools_schemas",
]
