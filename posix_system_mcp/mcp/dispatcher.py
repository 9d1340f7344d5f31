"""
Tool dispatcher.

The single path both transports take from (tool name, raw argument bag) to a
result `Envelope`. Raw arguments are normalized here, before anything else
sees them, and collector failures come back as failure envelopes rather than
exceptions.
"""

import json
import logging
from typing import Any, Optional, Sequence

from posix_system_mcp.core.arguments import normalize
from posix_system_mcp.core.config import ServerConfig
from posix_system_mcp.core.errors import CollectionError, ErrorKind, UnknownOperationError
from posix_system_mcp.core.types import Envelope
from posix_system_mcp.mcp.definitions import OPERATIONS, CollectorOptions, OperationSpec
from posix_system_mcp.mcp.metrics import ToolCallMetrics

logger = logging.getLogger("PosixSystemMCP.mcp.dispatcher")

DEFAULT_TOOL_CALL_WARN_MS = 15000.0


class Dispatcher:
    def __init__(
        self,
        operations: Sequence[OperationSpec] = OPERATIONS,
        options: Optional[CollectorOptions] = None,
        warn_ms: float = DEFAULT_TOOL_CALL_WARN_MS,
    ):
        self._operations = {op.name: op for op in operations}
        self.options = options or CollectorOptions()
        self.warn_ms = warn_ms

    @classmethod
    def from_config(cls, config: ServerConfig) -> "Dispatcher":
        return cls(
            options=CollectorOptions(process_scan_multiplier=config.process_scan_multiplier),
            warn_ms=config.tool_call_warn_ms,
        )

    @property
    def operation_names(self):
        return list(self._operations)

    def dispatch(self, name: str, raw_arguments: Any = None) -> Envelope:
        """Run one tool call and log its telemetry line."""
        metrics = ToolCallMetrics(name)
        envelope = self._dispatch(name, raw_arguments)
        if envelope.ok:
            metrics.record_success(json.dumps(envelope.payload))
        else:
            metrics.record_failure(envelope.error.classification.value)
        metrics.log_telemetry(self.warn_ms)
        return envelope

    def _dispatch(self, name: str, raw_arguments: Any) -> Envelope:
        operation = self._operations.get(name)
        if operation is None:
            err = UnknownOperationError(name)
            return Envelope.failure(name, err.kind, str(err))

        args = normalize(operation.parameters, operation.args_model, raw_arguments)

        try:
            record = operation.invoke(args, self.options)
        except CollectionError as exc:
            logger.warning("Tool '%s' failed: %s", name, exc)
            return Envelope.failure(name, exc.kind, str(exc))
        except Exception as exc:
            logger.error("Unexpected error in tool '%s'", name, exc_info=True)
            return Envelope.failure(name, ErrorKind.COLLECTION_FAILURE, f"{name} failed: {exc}")

        return Envelope.success(name, operation.status_message, record)
