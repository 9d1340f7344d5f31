"""
posix-system-mcp SDK exceptions.
"""

from __future__ import annotations

from typing import Any, Optional


class SystemMcpClientError(RuntimeError):
    """Base class for SDK errors."""


class SystemMcpConnectionError(SystemMcpClientError):
    """Raised when the SDK cannot reach the server."""


class SystemMcpAPIError(SystemMcpClientError):
    """
    Raised when the server answers with an HTTP error or a JSON-RPC error
    object. Tool collection failures carry their `classification`.
    """

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        code: Optional[int] = None,
        classification: Optional[str] = None,
        payload: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        self.path = path
        self.code = code
        self.classification = classification
        self.payload = payload
        status_hint = f" (status={status_code})" if status_code is not None else ""
        code_hint = f" (code={code})" if code is not None else ""
        path_hint = f" [{path}]" if path else ""
        super().__init__(f"{detail}{status_hint}{code_hint}{path_hint}")
