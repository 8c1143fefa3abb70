"""Per-sample strength estimate for raw radio bytes."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

SampleInput = Union[np.ndarray, Sequence[float]]


def analyze_samples(samples: SampleInput) -> np.ndarray:
    """Return ``20 * log10(s)`` for every sample ``s > 0`` and ``0.0`` otherwise.

    The result has the same length and order as ``samples``. There is no
    reference level, so the values only rank loud against quiet samples.
    """
    arr = np.asarray(samples, dtype=np.float64).ravel()
    out = np.zeros(arr.shape, dtype=np.float64)
    positive = arr > 0
    np.log10(arr, out=out, where=positive)
    out *= 20.0
    return out
