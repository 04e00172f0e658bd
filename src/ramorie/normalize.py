"""Shape tool return values into the object payloads MCP clients expect.

``structuredContent`` on a tool result must be a JSON object, but handlers
return whatever the backend hands them: a record, a list, ``None``, or an
acknowledgment scalar. :func:`normalize_result` maps all of those onto an
object without requiring every handler to pre-shape its output.
"""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any


def json_default(value: Any) -> Any:
    """Fallback encoder for handler values that are not plain JSON."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _wrap_items(items: list[Any]) -> dict[str, Any]:
    return {"items": items, "count": len(items)}


def replace_non_finite(value: Any) -> Any:
    """Return *value* with NaN and infinities replaced by ``None``.

    Strict JSON has no token for either.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: replace_non_finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [replace_non_finite(v) for v in value]
    return value


def normalize_result(value: Any) -> dict[str, Any]:
    """Return *value* as a JSON object.

    First matching rule wins:

    1. ``None`` -> ``{"data": None}``
    2. list/tuple -> ``{"items": [...], "count": n}``
    3. mapping -> the mapping itself
    4. anything else is serialized; a JSON array or object is parsed back
       and shaped by rules 2/3, everything else (scalars, values that fail
       to serialize) lands under ``"data"``.
    """
    if value is None:
        return {"data": None}
    if isinstance(value, (list, tuple)):
        return _wrap_items(list(value))
    if isinstance(value, dict):
        return value
    if isinstance(value, Mapping):
        return dict(value)

    try:
        encoded = json.dumps(value, default=json_default)
    except (TypeError, ValueError):
        return {"data": str(value)}

    head = encoded.lstrip()[:1]
    if head == "[":
        try:
            decoded = json.loads(encoded)
        except ValueError:
            return {"data": encoded}
        if isinstance(decoded, list):
            return _wrap_items(decoded)
    elif head == "{":
        try:
            decoded = json.loads(encoded)
        except ValueError:
            return {"data": encoded}
        if isinstance(decoded, dict):
            return decoded
    elif isinstance(value, (str, int, float, bool)):
        return {"data": value}
    return {"data": json.loads(encoded)}


def render_text(payload: Any) -> str:
    """Render a normalized payload as the text content block."""
    return json.dumps(payload, default=str, ensure_ascii=False)
