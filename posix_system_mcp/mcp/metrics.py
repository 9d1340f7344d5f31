import time
import logging

logger = logging.getLogger("PosixSystemMCP.mcp.metrics")


class ToolCallMetrics:
    """
    Tracks timing and outcome for a single tool dispatch.
    """
    def __init__(self, name: str):
        self.name = name
        self.outcome = "no_result"
        self.payload_bytes = 0
        self.started_monotonic = time.monotonic()

    def record_success(self, serialized_payload: str) -> None:
        self.outcome = "success"
        self.payload_bytes = len(serialized_payload.encode("utf-8"))

    def record_failure(self, classification: str) -> None:
        self.outcome = classification

    def elapsed_ms(self) -> float:
        return max(0.0, (time.monotonic() - self.started_monotonic) * 1000.0)

    def log_telemetry(self, warn_threshold_ms: float) -> None:
        """Log normalized telemetry for the tool call."""
        elapsed_ms = self.elapsed_ms()
        log_method = logger.warning if elapsed_ms >= warn_threshold_ms else logger.info
        log_method(
            "Tool call telemetry: name=%s outcome=%s elapsed_ms=%.1f payload_bytes=%d",
            self.name,
            self.outcome,
            elapsed_ms,
            self.payload_bytes,
        )
