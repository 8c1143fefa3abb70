"""Collapse per-second detection intervals into detection episodes."""

from __future__ import annotations

from typing import Iterable, List, Tuple, Union

from zwavewatch.detection.types import DetectionInterval

DEFAULT_MERGE_GAP_S = 5

IntervalLike = Union[DetectionInterval, Tuple[int, int]]


def merge_intervals(intervals: Iterable[IntervalLike], gap_s: int = DEFAULT_MERGE_GAP_S) -> List[DetectionInterval]:
    """Merge intervals whose start lies within ``gap_s`` seconds of the previous end.

    The result is sorted by start and any two neighbours are more than
    ``gap_s`` apart. Input order does not matter and the input is not modified.
    """
    if gap_s < 0:
        raise ValueError("gap_s must be >= 0")
    pairs = sorted(((int(start), int(end)) for start, end in intervals), key=lambda pair: pair[0])
    if not pairs:
        return []

    merged: List[List[int]] = [list(pairs[0])]
    for start, end in pairs[1:]:
        last = merged[-1]
        if start <= last[1] + gap_s:
            last[1] = max(last[1], end)
        else:
            merged.append([start, end])
    return [DetectionInterval(start, end) for start, end in merged]


def format_durations(intervals: Iterable[IntervalLike]) -> str:
    """Render intervals as ``"start-end,start-end"``."""
    return ",".join(f"{int(start)}-{int(end)}" for start, end in intervals)
