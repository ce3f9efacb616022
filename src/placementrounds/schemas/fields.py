"""Lenient field coercion shared by the schema models."""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def coerce_float(value: Any) -> float:
    """Return ``value`` as a non-negative float, ``0.0`` when unusable."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def coerce_int(value: Any) -> int:
    """Return ``value`` as a non-negative int, ``0`` when unusable.

    Strings are read up to the first non-digit, so ``"2 arrears"`` is 2.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return 0
        return max(int(value), 0)
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def coerce_str(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float, str)):
        return str(value)
    return ""


def coerce_str_list(value: Any) -> list[str]:
    """Keep the non-empty string entries of a list (or a lone string)."""
    if value is None:
        return []
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        value = [value]
    if not isinstance(value, Iterable) or isinstance(value, dict):
        return []
    items: list[str] = []
    for item in value:
        text = coerce_str(item).strip()
        if text:
            items.append(text)
    return items


def coerce_status_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        key: status
        for key, status in value.items()
        if isinstance(key, str) and isinstance(status, str)
    }


__all__ = [
    "coerce_float",
    "coerce_int",
    "coerce_str",
    "coerce_str_list",
    "coerce_status_map",
]
