"""Replay a raw 8-bit I/Q capture file as if it came from a radio."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from zwavewatch.util.errors import DeviceError
from zwavewatch.util.logging import get_logger

logger = get_logger(__name__)


class ReplaySampleSource:
    """Serve consecutive slices of a ``hackrf_transfer``/``rtl_sdr`` capture.

    Each acquisition consumes ``2 * sample_rate * duration_s`` bytes (one I
    and one Q byte per sample). Frequency is ignored. Once the capture is
    exhausted every acquisition returns an empty array.

    A replay does not block like a radio does, so it keeps its own timeline:
    ``timeline()`` advances by ``duration_s`` per acquisition and runners use
    it in place of the wall clock.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        try:
            self.data = np.fromfile(self.path, dtype=np.uint8)
        except OSError as exc:
            raise DeviceError(f"cannot open capture {self.path}: {exc}", details={"path": str(self.path)}, cause=exc) from exc
        self.offset = 0
        self.elapsed_s = 0.0
        logger.info("Replaying %d bytes from %s", self.data.size, self.path, extra={"driver": "replay"})

    def timeline(self) -> float:
        return self.elapsed_s

    def acquire(self, frequency_hz: int, sample_rate: int, duration_s: float) -> np.ndarray:
        count = int(2 * sample_rate * duration_s)
        chunk = self.data[self.offset : self.offset + count]
        self.offset += chunk.size
        self.elapsed_s += float(duration_s)
        return chunk

    @property
    def remaining(self) -> int:
        return int(self.data.size - self.offset)

    def close(self) -> None:
        if self.remaining:
            logger.info("Replay closed with %d unread bytes", self.remaining, extra={"driver": "replay"})
        self.data = np.empty(0, dtype=np.uint8)
        self.offset = 0
