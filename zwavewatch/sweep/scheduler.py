"""Time-window scheduling for multi-window scans."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from zwavewatch.util.time import Clock, monotonic_clock


@dataclass(frozen=True)
class ScanWindow:
    """Single acquisition window emitted by the scheduler."""

    index: int
    elapsed_s: float

    @property
    def start_s(self) -> int:
        return int(self.elapsed_s)


class WindowScheduler:
    """Yield windows while at least one full window fits in the scan budget.

    Elapsed time is read from ``clock`` before each window, so a window that
    overruns its nominal length delays the next one instead of being
    compensated. The final partial window of the budget is never scheduled.
    """

    def __init__(self, duration_s: float, window_s: float = 1.0, clock: Clock = monotonic_clock) -> None:
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        if duration_s < 0:
            raise ValueError("duration_s must be >= 0")
        self._duration_s = float(duration_s)
        self._window_s = float(window_s)
        self._clock = clock
        self.started_at: float = 0.0

    def __iter__(self) -> Iterator[ScanWindow]:
        self.started_at = self._clock()
        idx = 0
        while True:
            elapsed = self._clock() - self.started_at
            if elapsed + self._window_s > self._duration_s:
                return
            yield ScanWindow(index=idx, elapsed_s=elapsed)
            idx += 1

    @property
    def count(self) -> int:
        """Upper bound on the number of windows when each takes exactly ``window_s``."""

        return int(self._duration_s // self._window_s)
