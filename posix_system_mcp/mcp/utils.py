import json
import logging
from typing import Any, Dict

logger = logging.getLogger("PosixSystemMCP.mcp.utils")

DEFAULT_TOOL_RESPONSE_MAX_CHARS = 32768
_TRUNCATION_SUFFIX = "\n\n[Response truncated due to size limits]"


def truncate_tool_text(text: str, name: str, max_chars: int = DEFAULT_TOOL_RESPONSE_MAX_CHARS) -> str:
    """Apply the response length limit to a tool's text content."""
    if len(text) > max_chars:
        logger.info("Truncating response for tool '%s' (%d -> %d chars)", name, len(text), max_chars)
        cutoff = max(0, max_chars - len(_TRUNCATION_SUFFIX))
        return text[:cutoff] + _TRUNCATION_SUFFIX
    return text


def format_payload_text(payload: Dict[str, Any], name: str, max_chars: int = DEFAULT_TOOL_RESPONSE_MAX_CHARS) -> str:
    """Pretty JSON rendering of a tool payload for text-only clients."""
    return truncate_tool_text(json.dumps(payload, indent=2), name, max_chars)
