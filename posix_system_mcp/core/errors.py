"""
Error taxonomy shared by the dispatcher and both transports.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNKNOWN_OPERATION = "UnknownOperation"
    COLLECTION_FAILURE = "CollectionFailure"
    INVALID_REQUEST_FRAMING = "InvalidRequestFraming"
    CONFIGURATION_PARSE_FAILURE = "ConfigurationParseFailure"


class SystemMcpError(RuntimeError):
    """Base class for server-side errors."""

    kind: ErrorKind = ErrorKind.COLLECTION_FAILURE


class UnknownOperationError(SystemMcpError):
    """Raised when a tool name is not in the operation registry."""

    kind = ErrorKind.UNKNOWN_OPERATION

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown tool: {name}")


class CollectionError(SystemMcpError):
    """
    Raised by a collector when the underlying OS query fails.

    The message names the failing sub-step ("failed to get host info: ...");
    the original exception is chained as __cause__.
    """

    kind = ErrorKind.COLLECTION_FAILURE


class InvalidRequestFramingError(SystemMcpError):
    """Malformed request at the transport boundary (bad JSON, wrong verb)."""

    kind = ErrorKind.INVALID_REQUEST_FRAMING

    def __init__(self, detail: str, *, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(detail)


class ConfigurationParseError(SystemMcpError):
    """Malformed runtime configuration blob. Never surfaced to clients."""

    kind = ErrorKind.CONFIGURATION_PARSE_FAILURE
