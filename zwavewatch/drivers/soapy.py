"""SoapySDR-backed sample source (HackRF by default)."""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from zwavewatch.util.errors import DeviceError
from zwavewatch.util.logging import get_logger
from zwavewatch.util.time import Clock, monotonic_clock

try:  # pragma: no cover - optional dependency
    import SoapySDR  # type: ignore
    from SoapySDR import SOAPY_SDR_CS8, SOAPY_SDR_OVERFLOW, SOAPY_SDR_RX, SOAPY_SDR_TIMEOUT  # type: ignore

    HAVE_SOAPY = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_SOAPY = False
    SoapySDR = None  # type: ignore
    SOAPY_SDR_CS8 = "CS8"  # type: ignore
    SOAPY_SDR_RX = 1  # type: ignore
    SOAPY_SDR_TIMEOUT = -1  # type: ignore
    SOAPY_SDR_OVERFLOW = -4  # type: ignore

logger = get_logger(__name__)

# HackRF front-end amplifier is either bypassed or a fixed +14 dB.
AMP_GAIN_DB = 14.0
READ_TIMEOUT_US = 1_000_000


def parse_device_args(text: Optional[str]) -> Dict[str, str]:
    """Split ``'serial=abc,index=0'`` into a Soapy kwargs dict."""
    args: Dict[str, str] = {}
    if not text:
        return args
    for kv in str(text).split(","):
        if "=" in kv:
            k, v = kv.split("=", 1)
            args[k.strip()] = v.strip()
    return args


def _stream_count(st) -> int:
    n = getattr(st, "ret", st)
    if isinstance(n, tuple):
        n = n[0]
    if isinstance(n, (list, np.ndarray)):
        n = n[0]
    return int(n)


class SoapySampleSource:
    """Owned handle on one SoapySDR device streaming signed 8-bit I/Q."""

    def __init__(
        self,
        driver: str = "hackrf",
        device_args: Optional[str] = None,
        *,
        amp_enable: bool = True,
        lna_gain_db: float = 16.0,
        vga_gain_db: float = 20.0,
        chunk_samples: int = 131_072,
        clock: Clock = monotonic_clock,
    ):
        if not HAVE_SOAPY:
            raise DeviceError("SoapySDR not available", details={"driver": driver})
        dev_args: Dict[str, str] = {"driver": driver}
        dev_args.update(parse_device_args(device_args))
        self.driver = driver
        self.gains = {
            "AMP": AMP_GAIN_DB if amp_enable else 0.0,
            "LNA": float(lna_gain_db),
            "VGA": float(vga_gain_db),
        }
        self.chunk_samples = int(chunk_samples)
        self.clock = clock
        self.dev = None
        self.stream = None
        try:
            self.dev = SoapySDR.Device(dev_args)  # type: ignore[union-attr]
            self.stream = self.dev.setupStream(SOAPY_SDR_RX, SOAPY_SDR_CS8)
        except Exception as exc:
            self._release_device()
            raise DeviceError(f"failed to open SoapySDR device '{driver}': {exc}", details=dev_args, cause=exc) from exc
        logger.info("Opened SoapySDR device", extra={"driver": driver})

    def _release_device(self) -> None:
        if self.dev is None:
            return
        try:
            SoapySDR.Device.unmake(self.dev)  # type: ignore[union-attr]
        except Exception as exc:
            logger.warning("Error releasing SoapySDR device: %s", exc, extra={"driver": self.driver})
        self.dev = None

    def _configure(self, frequency_hz: int, sample_rate: int) -> None:
        try:
            self.dev.setSampleRate(SOAPY_SDR_RX, 0, float(sample_rate))
            self.dev.setFrequency(SOAPY_SDR_RX, 0, float(frequency_hz))
            available = set(self.dev.listGains(SOAPY_SDR_RX, 0))
            for name, value in self.gains.items():
                if name in available:
                    self.dev.setGain(SOAPY_SDR_RX, 0, name, value)
        except Exception as exc:
            raise DeviceError(
                f"failed to configure {self.driver} at {frequency_hz} Hz: {exc}",
                details={"frequency_hz": frequency_hz, "sample_rate": sample_rate},
                cause=exc,
            ) from exc

    def _read_chunk(self, buff: np.ndarray) -> int:
        try:
            st = self.dev.readStream(self.stream, [buff], self.chunk_samples, timeoutUs=READ_TIMEOUT_US)
        except Exception as exc:
            raise DeviceError(f"readStream raised: {exc}", details={"driver": self.driver}, cause=exc) from exc
        return _stream_count(st)

    def acquire(self, frequency_hz: int, sample_rate: int, duration_s: float) -> np.ndarray:
        """Receive for ``duration_s`` seconds and return the raw I/Q bytes as uint8."""
        self._configure(frequency_hz, sample_rate)
        buff = np.empty(2 * self.chunk_samples, dtype=np.int8)
        chunks: List[np.ndarray] = []
        try:
            self.dev.activateStream(self.stream)
        except Exception as exc:
            raise DeviceError(f"failed to start RX stream: {exc}", cause=exc) from exc
        start = self.clock()
        try:
            while True:
                n = self._read_chunk(buff)
                if n > 0:
                    chunks.append(buff[: 2 * n].copy())
                elif n == SOAPY_SDR_OVERFLOW:
                    logger.debug("RX overflow, samples dropped", extra={"driver": self.driver})
                elif n != SOAPY_SDR_TIMEOUT:
                    raise DeviceError(f"readStream failed with code {n}", details={"code": n})
                if self.clock() - start >= duration_s:
                    break
        finally:
            # Stopping a stream on a device that already failed must not mask that failure.
            try:
                self.dev.deactivateStream(self.stream)
            except Exception as exc:
                logger.warning("Error stopping RX stream: %s", exc, extra={"driver": self.driver})
        if not chunks:
            return np.empty(0, dtype=np.uint8)
        return np.concatenate(chunks).view(np.uint8)

    def close(self) -> None:
        if self.stream is not None:
            try:
                self.dev.closeStream(self.stream)
            except Exception as exc:
                logger.warning("Error closing SoapySDR stream: %s", exc)
            self.stream = None
        self._release_device()
