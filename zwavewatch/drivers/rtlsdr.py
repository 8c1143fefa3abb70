"""Native librtlsdr (pyrtlsdr) sample source."""

from __future__ import annotations

from typing import List, Optional, Union

import numpy as np

from zwavewatch.util.errors import DeviceError
from zwavewatch.util.logging import get_logger
from zwavewatch.util.time import Clock, monotonic_clock

try:  # pragma: no cover - optional dependency
    from rtlsdr import RtlSdr  # type: ignore

    HAVE_RTLSDR = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_RTLSDR = False
    RtlSdr = None  # type: ignore

logger = get_logger(__name__)


class RTLSDRSampleSource:
    """Convenience wrapper around pyrtlsdr.RtlSdr returning unsigned I/Q bytes."""

    def __init__(
        self,
        gain: Union[str, float] = "auto",
        *,
        device_index: Optional[int] = None,
        serial_number: Optional[str] = None,
        chunk_bytes: int = 262_144,
        clock: Clock = monotonic_clock,
    ):
        if not HAVE_RTLSDR:
            raise DeviceError("pyrtlsdr not available", details={"driver": "rtlsdr_native"})
        try:
            if serial_number:
                self.dev = RtlSdr(serial_number=str(serial_number))  # type: ignore[misc]
            elif device_index is not None:
                self.dev = RtlSdr(device_index=int(device_index))  # type: ignore[misc]
            else:
                self.dev = RtlSdr()  # type: ignore[misc]
            if isinstance(gain, str) and gain == "auto":
                self.dev.gain = "auto"
            else:
                self.dev.gain = float(gain)
        except Exception as exc:
            raise DeviceError(f"failed to open RTL-SDR: {exc}", cause=exc) from exc
        self.chunk_bytes = int(chunk_bytes)
        self.clock = clock
        logger.info("Opened RTL-SDR device", extra={"driver": "rtlsdr_native"})

    def acquire(self, frequency_hz: int, sample_rate: int, duration_s: float) -> np.ndarray:
        try:
            self.dev.sample_rate = sample_rate
            self.dev.center_freq = frequency_hz
        except Exception as exc:
            raise DeviceError(f"failed to tune RTL-SDR to {frequency_hz} Hz: {exc}", cause=exc) from exc
        chunks: List[np.ndarray] = []
        start = self.clock()
        while True:
            try:
                raw = self.dev.read_bytes(self.chunk_bytes)
            except Exception as exc:
                raise DeviceError(f"RTL-SDR read failed: {exc}", cause=exc) from exc
            chunks.append(np.frombuffer(bytes(raw), dtype=np.uint8))
            if self.clock() - start >= duration_s:
                break
        return np.concatenate(chunks)

    def close(self) -> None:
        try:
            self.dev.close()
        except Exception as exc:
            logger.warning("Error closing RTL-SDR: %s", exc)
