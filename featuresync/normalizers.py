"""Utility helpers for normalising raw catalog values."""

from __future__ import annotations

import re
from typing import Any

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


def coerce_entry_id(key: Any) -> int | None:
    """Read the integer id at the start of a catalog key, like ``parseInt``."""

    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key

    match = _LEADING_INTEGER.match(str(key))
    if not match:
        return None
    return int(match.group(1))


def normalize_device_list(value: Any) -> list[Any]:
    """Return an availability list, substituting ``[]`` for missing values."""

    if value is None or value == "" or value is False:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


__all__ = ["coerce_entry_id", "normalize_device_list"]
