"""
posix-system-mcp Configuration
------------------------------
Process configuration (loaded once from environment variables) and the
HTTP transport's runtime configuration snapshot.
"""

import os
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("PosixSystemMCP.Config")

DEFAULT_PORT = 8081
DEFAULT_HOST = "0.0.0.0"
DEFAULT_REFRESH_INTERVAL_MS = 1000
MIN_REFRESH_INTERVAL_MS = 100
MAX_REFRESH_INTERVAL_MS = 10000
SUPPORTED_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def _env_flag(name: str, default: bool = False) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _parse_positive_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value <= 0:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected positive integer. Using %d.",
            name,
            raw,
            default,
        )
        return default


def _normalize_log_level(level: Optional[str], default: str = "info") -> str:
    candidate = (level or "").strip().lower()
    if candidate in SUPPORTED_LOG_LEVELS:
        return candidate
    if candidate:
        logger.warning(
            "Unsupported log level '%s'; expected one of %s. Falling back to '%s'.",
            candidate,
            SUPPORTED_LOG_LEVELS,
            default,
        )
    return default


class ServerConfig(BaseModel):
    """Process-wide settings, fixed after startup."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "info"
    log_file: Optional[str] = None
    debug: bool = False

    # stdio dispatch pool
    dispatch_max_workers: int = 8
    dispatch_queue_limit: int = 64

    # Process listing gathers limit * multiplier candidates before sorting.
    process_scan_multiplier: int = 2

    tool_response_max_chars: int = 32768
    tool_call_warn_ms: float = 15000.0

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Load configuration from environment variables.

        - PORT: HTTP listen port (default 8081)
        - POSIX_MCP_HOST: HTTP bind address
        - POSIX_MCP_LOG_LEVEL / POSIX_MCP_LOG_FILE: logging
        - POSIX_MCP_DEBUG: initial runtime debug flag for the HTTP transport
        - POSIX_MCP_DISPATCH_MAX_WORKERS / POSIX_MCP_DISPATCH_QUEUE_LIMIT
        - POSIX_MCP_PROCESS_SCAN_MULTIPLIER
        - POSIX_MCP_TOOL_RESPONSE_MAX_CHARS / POSIX_MCP_TOOL_CALL_WARN_MS
        """
        workers = _parse_positive_int_env("POSIX_MCP_DISPATCH_MAX_WORKERS", 8)
        queue_limit = max(
            workers,
            _parse_positive_int_env("POSIX_MCP_DISPATCH_QUEUE_LIMIT", workers * 8),
        )
        return cls(
            host=os.environ.get("POSIX_MCP_HOST", DEFAULT_HOST),
            port=_parse_positive_int_env("PORT", DEFAULT_PORT),
            log_level=_normalize_log_level(os.environ.get("POSIX_MCP_LOG_LEVEL")),
            log_file=os.environ.get("POSIX_MCP_LOG_FILE") or None,
            debug=_env_flag("POSIX_MCP_DEBUG"),
            dispatch_max_workers=workers,
            dispatch_queue_limit=queue_limit,
            process_scan_multiplier=_parse_positive_int_env("POSIX_MCP_PROCESS_SCAN_MULTIPLIER", 2),
            tool_response_max_chars=_parse_positive_int_env("POSIX_MCP_TOOL_RESPONSE_MAX_CHARS", 32768),
            tool_call_warn_ms=float(_parse_positive_int_env("POSIX_MCP_TOOL_CALL_WARN_MS", 15000)),
        )


class RuntimeConfig(BaseModel):
    """
    Per-request replaceable settings of the HTTP transport.

    Arrives as base64-encoded JSON (`{"refreshInterval": 500, "enableDebug": true}`)
    and is swapped in wholesale; instances are never mutated.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    refresh_interval: int = Field(default=DEFAULT_REFRESH_INTERVAL_MS, alias="refreshInterval")
    debug: bool = Field(default=False, alias="enableDebug")

    @field_validator("refresh_interval")
    @classmethod
    def _clamp_refresh_interval(cls, value: int) -> int:
        return max(MIN_REFRESH_INTERVAL_MS, min(MAX_REFRESH_INTERVAL_MS, value))
