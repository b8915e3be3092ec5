"""Parameter validation and type casting.

Handlers always receive normalized data: strings are trimmed, numbers and
floats are cast and checked for NaN, JSON strings are decoded and dates are
turned into datetime values. Validation mutates the message in place.
"""

import json
import math
import re
from datetime import datetime, timezone

from braque.encoding import as_text
from braque.errors import ConfigurationError, ValidationError
from braque.routes.model import ParamDef, ParamRef, SharedDefines

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class _InvalidDate:
    """Stand-in for a date value that could not be parsed."""

    def __repr__(self) -> str:
        return "INVALID_DATE"

    def __str__(self) -> str:
        return "Invalid Date"


INVALID_DATE = _InvalidDate()


def resolve_param(name: str, definition: ParamDef | ParamRef, defines: SharedDefines) -> ParamDef:
    """Return the concrete definition, following a `$alias` into the defines block."""
    if isinstance(definition, ParamRef):
        resolved = defines.params.get(definition.alias)
        if resolved is None:
            raise ConfigurationError(
                f"Invalid variable parameter name substitution; param '{definition.alias}' "
                f"not found in defines block (referenced by '{name}')"
            )
        return resolved
    return definition


def validate(message: dict, params: dict[str, ParamDef | ParamRef], defines: SharedDefines) -> None:
    """Validate and cast every declared parameter of `message` in place.

    Raises ValidationError on the first offending parameter, and
    ConfigurationError if the schema references an unknown alias.
    """
    for name, definition in params.items():
        param = resolve_param(name, definition, defines)
        value = _trim(message.get(name))

        if _is_empty(value):
            # Undefined optional parameters need no validation.
            if not param.required:
                continue
            raise ValidationError(f"Empty value for parameter '{name}': {message.get(name)!r}", param=name)

        if param.validation and not re.search(param.validation, as_text(value)):
            raise ValidationError(f"Invalid value for parameter '{name}': {value}", param=name)

        if param.type:
            value = _cast(name, value, param.type.lower(), message.get(name))
        message[name] = value


def _cast(name: str, value, param_type: str, original):
    if param_type == "number":
        cast = _parse_int(value)
        if cast is None:
            raise ValidationError(f"Invalid value for parameter '{name}': {original} is NaN", param=name)
        return cast
    if param_type == "float":
        cast = _parse_float(value)
        if cast is None:
            raise ValidationError(f"Invalid value for parameter '{name}': {original} is NaN", param=name)
        return cast
    if param_type == "json":
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                raise ValidationError(
                    f"JSON parse error of value for parameter '{name}': {value}", param=name
                ) from None
        return value
    if param_type == "date":
        return _parse_date(value)
    # string, file and unknown types pass through unchanged
    return value


def _trim(value):
    if isinstance(value, str):
        return value.strip()
    return value


def _is_empty(value) -> bool:
    return value is None or value == ""


def _parse_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else None


def _parse_float(value) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.lstrip("+-").startswith("Infinity"):
        return float("-inf") if text.startswith("-") else float("inf")
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else None


def _parse_date(value):
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return INVALID_DATE
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return INVALID_DATE
