"""Clock helpers so release checks can be evaluated against a chosen instant."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Return the current local wall-clock time."""

    return datetime.now()


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock that always reports ``moment``."""

    def _now() -> datetime:
        return moment

    return _now
