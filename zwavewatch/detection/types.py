"""Dataclasses shared across the detector, merger, and scan runner."""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional


@dataclass(frozen=True)
class DetectionWindow:
    index: int
    start_s: int
    end_s: int
    max_strength_db: Optional[float]  # None when the window produced no samples
    detected: bool
    sample_count: int = 0


@dataclass(frozen=True)
class DetectionInterval:
    start_s: int
    end_s: int

    def __post_init__(self) -> None:
        if self.start_s > self.end_s:
            raise ValueError(f"interval start {self.start_s} is after end {self.end_s}")

    def __iter__(self) -> Iterator[int]:
        yield self.start_s
        yield self.end_s

    def __str__(self) -> str:
        return f"{self.start_s}-{self.end_s}"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan run, in the shape written to the result file."""

    frequency: float
    is_signal_detected: bool
    max_signal_strength: float
    zwave_durations: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frequency": float(self.frequency),
            "is_signal_detected": bool(self.is_signal_detected),
            "max_signal_strength": float(self.max_signal_strength),
            "zwave_durations": self.zwave_durations,
        }
