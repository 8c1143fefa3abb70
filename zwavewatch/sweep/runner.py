"""Scan runner binding configuration, sample source, detection, and result output."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from zwavewatch.detection.detector import ScanMaxTracker, detect_window
from zwavewatch.detection.merge import format_durations, merge_intervals
from zwavewatch.detection.types import DetectionInterval, DetectionWindow, ScanResult
from zwavewatch.drivers.replay import ReplaySampleSource
from zwavewatch.drivers.rtlsdr import RTLSDRSampleSource
from zwavewatch.drivers.soapy import SoapySampleSource
from zwavewatch.dsp.strength import analyze_samples
from zwavewatch.io.config import ScanConfig
from zwavewatch.io.results import write_result
from zwavewatch.sweep.scheduler import WindowScheduler
from zwavewatch.util.logging import get_logger
from zwavewatch.util.scan_logger import ScanEventLog
from zwavewatch.util.time import Clock, Sleeper, monotonic_clock

logger = get_logger(__name__)


def open_source(config: ScanConfig):
    """Open the sample source named by ``config.driver``."""
    if config.driver == "replay":
        assert config.replay_path is not None  # noqa: S101 - enforced by config validation
        return ReplaySampleSource(config.replay_path)
    if config.driver == "rtlsdr_native":
        return RTLSDRSampleSource(gain=config.gain)
    return SoapySampleSource(
        driver=config.driver,
        device_args=config.device_args,
        amp_enable=config.amp_enable,
        lna_gain_db=config.lna_gain_db,
        vga_gain_db=config.vga_gain_db,
    )


@dataclass(frozen=True)
class ScanReport:
    result: ScanResult
    output_path: str
    json_text: str
    windows: int = 0


class ScanRunner:
    """Run one instant or scheduled scan and persist its result.

    The sample source is opened once per run, passed to every acquisition,
    and closed when the run ends, whether it succeeded or not.
    """

    def __init__(
        self,
        config: ScanConfig,
        *,
        source_factory: Callable[[ScanConfig], object] = open_source,
        clock: Clock = monotonic_clock,
        sleep: Sleeper = time.sleep,
        events: Optional[ScanEventLog] = None,
    ):
        self.config = config
        self.source_factory = source_factory
        self.clock = clock
        self.sleep = sleep
        self.events = events
        self.windows: List[DetectionWindow] = []

    def _event(self, name: str, **fields) -> None:
        if self.events is not None:
            self.events.log(name, **fields)

    def countdown(self) -> None:
        for remaining in range(self.config.start_after_duration, 0, -1):
            logger.info("Scan starts in %d seconds", remaining)
            self.sleep(1.0)

    def run_instant_scan(self, source) -> ScanResult:
        cfg = self.config
        logger.info("Running instant scan...", extra={"frequency_hz": cfg.frequency_hz})
        if self.events is not None:
            self.events.start_scan("instant", config=cfg.to_dict())

        samples = source.acquire(cfg.frequency_hz, cfg.effective_sample_rate, cfg.instant_duration_s)
        logger.info("Received %d samples", len(samples))
        outcome = detect_window(analyze_samples(samples), cfg.threshold_db)

        if outcome.window_max is None:
            logger.warning("No samples received, nothing to analyse")
        else:
            logger.info("The highest strength found is: %.3f", outcome.window_max)
        if outcome.detected:
            logger.info("Z-Wave signal detected")
        else:
            logger.info("No Z-Wave signal detected")

        result = ScanResult(
            frequency=float(cfg.frequency_hz),
            is_signal_detected=outcome.detected,
            max_signal_strength=outcome.window_max if outcome.window_max is not None else 0.0,
            zwave_durations=str(cfg.instant_duration_s),
        )
        self._event("scan_complete", sample_count=int(len(samples)), **result.to_dict())
        return result

    def _analyse_window(self, source, index: int, start_s: int) -> DetectionWindow:
        cfg = self.config
        samples = source.acquire(cfg.frequency_hz, cfg.effective_sample_rate, cfg.window_s)
        outcome = detect_window(analyze_samples(samples), cfg.threshold_db)
        window = DetectionWindow(
            index=index,
            start_s=start_s,
            end_s=start_s + cfg.window_s,
            max_strength_db=outcome.window_max,
            detected=outcome.detected,
            sample_count=int(np.size(samples)),
        )
        if window.max_strength_db is None:
            logger.warning("Window %d returned no samples", index, extra={"window_index": index})
        else:
            logger.debug(
                "Window %d max=%.3f detected=%s",
                index,
                window.max_strength_db,
                window.detected,
                extra={"window_index": index},
            )
        self._event(
            "window",
            index=index,
            start_s=window.start_s,
            end_s=window.end_s,
            max_strength_db=window.max_strength_db,
            detected=window.detected,
            sample_count=window.sample_count,
        )
        return window

    def run_scheduled_scan(self, source) -> ScanResult:
        cfg = self.config
        self.countdown()

        tracker = ScanMaxTracker()
        raw_intervals: List[DetectionInterval] = []
        signal_detected = False
        self.windows = []

        # Sources without a real-time stream (replay) supply their own timeline.
        clock = getattr(source, "timeline", self.clock)
        scheduler = WindowScheduler(cfg.scan_duration, cfg.window_s, clock=clock)
        logger.info(
            "Starting scan for %d seconds (up to %d windows)...",
            cfg.scan_duration,
            scheduler.count,
            extra={"frequency_hz": cfg.frequency_hz},
        )
        if self.events is not None:
            self.events.start_scan("scheduled", planned_windows=scheduler.count, config=cfg.to_dict())
        for slot in scheduler:
            window = self._analyse_window(source, slot.index, slot.start_s)
            self.windows.append(window)
            tracker.update(window.max_strength_db)
            if window.detected:
                signal_detected = True
                raw_intervals.append(DetectionInterval(window.start_s, window.end_s))

        merged = merge_intervals(raw_intervals, cfg.merge_gap_s)
        logger.info(
            "Scan finished: %d windows (%d with samples), %d detections, %d merged intervals",
            len(self.windows),
            tracker.windows,
            len(raw_intervals),
            len(merged),
        )
        result = ScanResult(
            frequency=cfg.frequency_hz / 1_000_000.0,
            is_signal_detected=signal_detected,
            max_signal_strength=tracker.value,
            zwave_durations=format_durations(merged),
        )
        self._event(
            "scan_complete",
            windows=len(self.windows),
            windows_with_samples=tracker.windows,
            **result.to_dict(),
        )
        return result

    def run(self) -> ScanReport:
        cfg = self.config
        source = self.source_factory(cfg)
        started = self.clock()
        try:
            if cfg.instant_scan:
                result = self.run_instant_scan(source)
            else:
                result = self.run_scheduled_scan(source)
        finally:
            source.close()
        duration_ms = int((self.clock() - started) * 1000)
        logger.debug("Scan run took %d ms", duration_ms, extra={"duration_ms": duration_ms})

        output_path = cfg.instant_output if cfg.instant_scan else cfg.scheduled_output
        text = write_result(result, output_path, pretty=not cfg.instant_scan)
        return ScanReport(result=result, output_path=output_path, json_text=text, windows=len(self.windows))
