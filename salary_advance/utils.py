"""Utility functions for the salary advance calculator.

This module provides helpers for parsing user input into Python numbers, for
pulling digits out of identity and phone numbers and for producing the
timestamps stored on applications.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Optional, Union

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def number_from_str(value: str) -> Union[int, float]:
    """Convert a numeric string into an ``int`` or ``float``.

    The function strips any commas and returns an ``int`` when the value has
    no fractional part written out. It raises ``ValueError`` if conversion
    fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        if re.fullmatch(r"[+-]?\d+", cleaned):
            return int(cleaned)
        return float(cleaned)
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def parse_leading_int(value: object) -> Optional[int]:
    """Parse the leading integer of ``value`` the way a form field does.

    ``"1200"`` and ``"1200.75"`` both give ``1200``; a value with no leading
    digits gives ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def digits_only(value: str) -> str:
    """Return only the decimal digits of ``value``."""
    return re.sub(r"\D", "", value or "")


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """Return ``now`` (default: the current UTC time) as an ISO 8601 string."""
    now = now or datetime.now(timezone.utc)
    return now.isoformat()
