"""Fixed-threshold presence detector and scan-wide strength tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

DEFAULT_THRESHOLD_DB = 50.0


@dataclass(frozen=True)
class WindowDetection:
    detected: bool
    window_max: Optional[float]


def detect_window(
    strengths: Union[np.ndarray, Sequence[float]],
    threshold_db: float = DEFAULT_THRESHOLD_DB,
) -> WindowDetection:
    """Decide whether a window's strongest sample exceeds ``threshold_db``.

    An empty window has no maximum and is never reported as detected.
    """
    arr = np.asarray(strengths, dtype=np.float64)
    if arr.size == 0:
        return WindowDetection(detected=False, window_max=None)
    window_max = float(np.max(arr))
    return WindowDetection(detected=window_max > float(threshold_db), window_max=window_max)


class ScanMaxTracker:
    """Running maximum of window strengths across one scan run."""

    def __init__(self, initial: float = 0.0):
        self.value = float(initial)
        self.windows = 0

    def update(self, window_max: Optional[float]) -> float:
        if window_max is not None:
            self.windows += 1
            self.value = max(self.value, float(window_max))
        return self.value
