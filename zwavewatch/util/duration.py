"""Duration parsing helpers for CLI arguments."""

from __future__ import annotations

import argparse
from typing import Any, Optional

_MULTIPLIERS = {
    "s": 1,
    "m": 60,
    "h": 3600,
}


def parse_duration_to_seconds(spec: Optional[Any]) -> Optional[int]:
    """Parse strings like '30', '90s', '10m', '1h' into whole seconds.

    Scan timing is counted in whole seconds, so fractional results are
    truncated. Negative values are rejected.
    """

    if spec is None:
        return None
    if isinstance(spec, bool):
        raise argparse.ArgumentTypeError(f"Invalid duration '{spec}'")
    if isinstance(spec, (int, float)):
        seconds = float(spec)
    else:
        text = str(spec).strip().lower()
        if not text:
            return None
        unit = text[-1]
        if unit.isalpha():
            value_part = text[:-1]
        else:
            unit = "s"
            value_part = text
        if unit not in _MULTIPLIERS:
            raise argparse.ArgumentTypeError(f"Unsupported duration suffix '{unit}'")
        try:
            value = float(value_part)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Invalid duration '{spec}'") from exc
        seconds = value * _MULTIPLIERS[unit]
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"Duration must not be negative: '{spec}'")
    return int(seconds)
