import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import ValidationError

from posix_system_mcp.core.config import RuntimeConfig
from posix_system_mcp.core.errors import ConfigurationParseError

logger = logging.getLogger("PosixSystemMCP.mcp.state")


@dataclass
class SessionState:
    """Handshake state of one stdio session."""
    negotiated: bool = False
    initialized: bool = False
    protocol_version: Optional[str] = None
    client_info: Dict[str, Any] = field(default_factory=dict)


def decode_runtime_config(blob: str) -> RuntimeConfig:
    """
    Parse a base64-encoded JSON runtime config blob.

    Raises ConfigurationParseError on bad base64, bad JSON, a non-object
    document or values of the wrong type.
    """
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationParseError(f"invalid base64 config: {exc}") from exc
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationParseError(f"invalid JSON config: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigurationParseError("config must be a JSON object")
    try:
        return RuntimeConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigurationParseError(f"invalid config values: {exc}") from exc


def encode_runtime_config(config: RuntimeConfig) -> str:
    """Inverse of `decode_runtime_config`, using the wire field names."""
    return base64.b64encode(config.model_dump_json(by_alias=True).encode("utf-8")).decode("ascii")


class RuntimeConfigHolder:
    """
    Holds the current RuntimeConfig snapshot.

    Readers call `get()` without locking; writers replace the whole snapshot
    with a single reference assignment, so a reader sees either the old or
    the new snapshot, never a mix.
    """
    def __init__(self, initial: Optional[RuntimeConfig] = None):
        self._current = initial or RuntimeConfig()

    def get(self) -> RuntimeConfig:
        return self._current

    def replace(self, config: RuntimeConfig) -> None:
        self._current = config

    def apply_encoded(self, blob: str) -> bool:
        """
        Swap in the config encoded in `blob`. Returns False (keeping the
        previous snapshot) when the blob is malformed.
        """
        previous = self._current
        try:
            config = decode_runtime_config(blob)
        except ConfigurationParseError as exc:
            if previous.debug:
                logger.warning("Ignoring malformed runtime config: %s", exc)
            return False
        self.replace(config)
        if config.debug:
            logger.info(
                "Runtime config updated: refresh_interval=%d debug=%s",
                config.refresh_interval,
                config.debug,
            )
        return True
