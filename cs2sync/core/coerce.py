"""Lenient value coercion for loosely typed upstream payloads."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def to_int(value: Any) -> Optional[int]:
    """Integer or None; fractional numbers are truncated toward zero."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    n = to_float(value)
    return int(n) if n is not None else None


def to_bool(value: Any) -> Optional[bool]:
    """True/False for recognised forms, None (unknown) for everything else."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    return None


def first_of(item: Mapping[str, Any], *keys: str) -> Any:
    """First value under any of ``keys`` that is not None."""
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None
