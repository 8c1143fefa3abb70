"""Clock helpers shared across ZWaveWatch components."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

# Monotonic seconds; injected into runners so tests can drive elapsed time.
Clock = Callable[[], float]
Sleeper = Callable[[float], None]


def utc_now_str() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def monotonic_clock() -> float:
    return time.monotonic()
