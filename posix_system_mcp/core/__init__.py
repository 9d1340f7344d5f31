from posix_system_mcp.core.errors import (
    CollectionError,
    ConfigurationParseError,
    ErrorKind,
    InvalidRequestFramingError,
    SystemMcpError,
    UnknownOperationError,
)
from posix_system_mcp.core.types import Envelope, EnvelopeError

__all__ = [
    "CollectionError",
    "ConfigurationParseError",
    "ErrorKind",
    "InvalidRequestFramingError",
    "SystemMcpError",
    "UnknownOperationError",
    "Envelope",
    "EnvelopeError",
]
