"""Shared validation and coercion functions for all entry points.

Pure functions with no MCP, httpx, or Click dependencies.
"""

from __future__ import annotations

import math
import re
import uuid
from typing import Any

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

_PRIORITY_ALIASES = {
    "H": "H",
    "HIGH": "H",
    "M": "M",
    "MEDIUM": "M",
    "L": "L",
    "LOW": "L",
}
_PRIORITY_RANK = {"H": 3, "M": 2, "L": 1}


def to_int(value: Any) -> int:
    """Coerce a loosely typed JSON value to an int.

    Accepts ints, floats (truncated toward zero) and strings with a leading
    integer (``"12"``, ``" 7 items"``, ``"3.9"`` -> 3). Everything else,
    including bools and non-finite floats, becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def clean_str(value: Any) -> str:
    """Return *value* stripped, or ``""`` when it is not a string."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def clean_str_list(value: Any, name: str) -> tuple[list[str], str | None]:
    """Validate a JSON array of strings.

    Returns (stripped_items, None) on success or ([], error_message) on failure.
    """
    if not isinstance(value, list):
        return ([], f"{name} must be an array")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            return ([], f"{name} must contain only strings")
        items.append(item.strip())
    return (items, None)


def normalize_priority(value: Any) -> str:
    """Map H/HIGH, M/MEDIUM, L/LOW (any case) to H/M/L. Anything else is M."""
    return _PRIORITY_ALIASES.get(clean_str(value).upper(), "M")


def priority_rank(value: Any) -> int:
    """Sort key for task priorities: H=3, M=2, L=1, unknown=0."""
    key = _PRIORITY_ALIASES.get(clean_str(value).upper())
    return _PRIORITY_RANK.get(key, 0) if key else 0


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True
