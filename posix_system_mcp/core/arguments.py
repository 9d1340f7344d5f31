"""
Argument normalization.

Tool arguments arrive as an untyped bag from either transport. `normalize`
turns that bag into the operation's frozen argument model and never fails:
missing, mistyped or unrecognized values fall back to the declared default,
numeric values are clamped into their declared bounds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

ArgsT = TypeVar("ArgsT", bound=BaseModel)

_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off")


@dataclass(frozen=True)
class ParameterSpec:
    """
    Declaration of one tool parameter.

    The same declaration drives normalization and the published JSON schema.
    `non_positive_uses_default` selects the fallback for integers <= 0: the
    default rather than the lower bound.
    """
    name: str
    type: str  # "boolean" | "integer" | "string"
    description: str
    default: Any
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    enum: Optional[Tuple[str, ...]] = None
    non_positive_uses_default: bool = False

    def json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": self.type,
            "description": self.description,
            "default": self.default,
        }
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        return schema


def coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return int(parsed) if math.isfinite(parsed) else None
    return None


def coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


def clamp(value: int, minimum: Optional[int], maximum: Optional[int]) -> int:
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


def normalize_value(spec: ParameterSpec, raw: Any) -> Any:
    """Normalize a single raw value against its declaration."""
    if spec.type == "boolean":
        coerced = coerce_bool(raw)
        return spec.default if coerced is None else coerced

    if spec.type == "integer":
        number = coerce_int(raw)
        if number is None:
            return spec.default
        if number <= 0 and spec.non_positive_uses_default:
            return spec.default
        return clamp(number, spec.minimum, spec.maximum)

    if not isinstance(raw, str):
        return spec.default
    if spec.enum is not None:
        lowered = raw.strip().lower()
        return lowered if lowered in spec.enum else spec.default
    return raw


def normalize(
    parameters: Tuple[ParameterSpec, ...],
    model: Type[ArgsT],
    raw_arguments: Optional[Mapping[str, Any]],
) -> ArgsT:
    """
    Build the typed argument model for one operation from an untyped bag.

    Keys not declared in `parameters` are ignored.
    """
    bag: Mapping[str, Any] = raw_arguments if isinstance(raw_arguments, Mapping) else {}
    values = {
        spec.name: normalize_value(spec, bag[spec.name]) if spec.name in bag else spec.default
        for spec in parameters
    }
    return model(**values)
