"""Lenient scalar coercion shared by the date parser and the template engine."""

from __future__ import annotations

import json
import math
import re
from typing import Any

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def leading_int(value: Any) -> int | None:
    """
    Parse the leading integer of a value.

    ``"12abc"`` gives 12, ``"abc"`` gives None. Floats are truncated and
    booleans are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def leading_float(value: Any) -> float | None:
    """Parse the leading decimal number of a value, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT.match(str(value))
    return float(match.group(1)) if match else None


def format_number(value: float) -> str:
    """Render a number without a spurious ``.0`` on integral values; overflow renders as ``Infinity``."""
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if math.isnan(value):
        return "NaN"
    if value == int(value):
        return str(int(value))
    return repr(value)


def to_json(value: Any) -> str:
    """Compact JSON, falling back to ``str`` for values JSON cannot encode."""
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def stringify(value: Any) -> str:
    """
    Text form of a template value.

    Booleans render as ``true``/``false``, integral floats drop their
    fraction, lists join their items with commas and mappings become JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return to_json(value)
    return str(value)
