"""Utility helpers for the Streamly service."""

from __future__ import annotations

import math
import re
from typing import Any


LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> int | None:
    """Parse the integer prefix of ``value`` the way lenient web parsers do.

    ``"2"`` and ``"2 (Specials)"`` both give ``2``; ``"Specials"``, ``""`` and
    ``None`` give ``None``.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def clean_text(value: Any) -> str:
    """Return ``value`` as a stripped string, treating ``None`` as empty."""

    if value is None:
        return ""
    return str(value).strip()
