# flowshape/render/preview.py
"""
Safe textual preview of runtime values.

preview_value() is total: whatever it is given (cycles, objects that refuse
to be stringified, huge payloads) it returns a string. Work is bounded by
the caps below before anything is serialised.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from typing import Any, Set, Tuple

from flowshape.utils.logger import get_logger

log = get_logger("render.preview")

MAX_DEPTH = 6
MAX_ARRAY_ITEMS = 20
MAX_OBJECT_KEYS = 50
MAX_STRING_LENGTH = 2000
MAX_PREVIEW_CHARS = 20000

TRUNCATED = "[truncated]"
CIRCULAR = "[circular]"
REDACTED = "[redacted]"
FALLBACK = "[unserializable value]"

# ints with more than MAX_STRING_LENGTH digits are previewed as strings
_INT_CAP = 10 ** MAX_STRING_LENGTH

_SENSITIVE_KEY =re.compile(r"(secret|token|api[_-]?key|authorization|password|signature)", re.IGNORECASE)


def is_sensitive_key(key: str) -> bool:
    return bool(_SENSITIVE_KEY.search(key))


def sanitize_value(value: Any) -> Tuple[Any, bool]:
    """
    Return (json_safe_value, truncated).

    `truncated` is True when any cap was hit (depth, item count, key count,
    string length).
    """
    return _sanitize(value, 0, set())


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return FALLBACK


def _truncate_string(s: str) -> Tuple[str, bool]:
    if len(s) <= MAX_STRING_LENGTH:
        return s, False
    return s[:MAX_STRING_LENGTH] + "...", True


def _sanitize(value: Any, depth: int, active: Set[int]) -> Tuple[Any, bool]:
    if depth >= MAX_DEPTH:
        return TRUNCATED, True

    if value is None or isinstance(value, bool):
        return value, False

    if isinstance(value, int):
        if abs(value) < _INT_CAP:
            return value, False
        # str() itself raises past the interpreter's digit limit
        text = _safe_str(value)
        if text == FALLBACK:
            return text, True
        return _truncate_string(text)

    if isinstance(value, float):
        # json.dumps would emit NaN/Infinity, which is not JSON
        if math.isnan(value) or math.isinf(value):
            return str(value), False
        return value, False

    if isinstance(value, str):
        return _truncate_string(value)

    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>", False

    if isinstance(value, BaseException):
        return {"name": type(value).__name__, "message": _safe_str(value)}, False

    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        marker = id(value)
        if marker in active:
            return CIRCULAR, False
        active.add(marker)
        try:
            if isinstance(value, Mapping):
                return _sanitize_mapping(value, depth, active)
            return _sanitize_sequence(value, depth, active)
        finally:
            active.discard(marker)

    text, truncated = _truncate_string(_safe_str(value))
    return text, truncated


def _sanitize_mapping(value: Mapping, depth: int, active: Set[int]) -> Tuple[Any, bool]:
    out = {}
    truncated = False
    for i, (key, child) in enumerate(value.items()):
        if i >= MAX_OBJECT_KEYS:
            truncated = True
            break
        key = key if isinstance(key, str) else _safe_str(key)
        if key in out:
            # keys colliding after str(): keep the first entry
            truncated = True
            continue
        if is_sensitive_key(key):
            out[key] = REDACTED
            continue
        clean, child_truncated = _sanitize(child, depth + 1, active)
        out[key] = clean
        truncated = truncated or child_truncated
    return out, truncated


def _sanitize_sequence(value: Any, depth: int, active: Set[int]) -> Tuple[Any, bool]:
    if isinstance(value, (set, frozenset)):
        return _sanitize_set(value, depth, active)
    out = []
    truncated = False
    for i, item in enumerate(value):
        if i >= MAX_ARRAY_ITEMS:
            truncated = True
            break
        clean, item_truncated = _sanitize(item, depth + 1, active)
        out.append(clean)
        truncated = truncated or item_truncated
    return out, truncated


def _sanitize_set(value: Any, depth: int, active: Set[int]) -> Tuple[Any, bool]:
    """Sets have no stable order; members are sorted by their preview text."""
    items = []
    truncated = False
    for item in value:
        clean, item_truncated = _sanitize(item, depth + 1, active)
        items.append((safe_json_dumps(clean, indent=None), clean))
        truncated = truncated or item_truncated
    items.sort(key=lambda pair: pair[0])
    if len(items) > MAX_ARRAY_ITEMS:
        truncated = True
    return [clean for _, clean in items[:MAX_ARRAY_ITEMS]], truncated


def safe_json_dumps(value: Any, indent: int = 2) -> str:
    """Serialise an already sanitised value; falls back to a quoted str()."""
    try:
        return json.dumps(value, indent=indent, ensure_ascii=True)
    except (TypeError, ValueError):
        return json.dumps(_safe_str(value), ensure_ascii=True)


def preview_value(value: Any, indent: int = 2) -> str:
    """Canonical, escaped, bounded preview of any value. Never raises."""
    try:
        clean, _ = sanitize_value(value)
        text = safe_json_dumps(clean, indent=indent)
    except Exception as e:
        log.debug("preview fell back to placeholder: %s", type(e).__name__)
        return FALLBACK
    if len(text) > MAX_PREVIEW_CHARS:
        return text[:MAX_PREVIEW_CHARS] + "\n... " + TRUNCATED
    return text
