import json

import numpy as np
import pytest

from zwavewatch.io.config import ScanConfig
from zwavewatch.sweep.runner import ScanRunner
from zwavewatch.sweep.scheduler import WindowScheduler
from zwavewatch.util.errors import DeviceError
from zwavewatch.util.scan_logger import ScanEventLog

LOUD = 1000.0  # 60 dB
QUIET = 10.0  # 20 dB


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedSource:
    """Returns one sample per window at the scripted level; advances the fake clock."""

    def __init__(self, clock: FakeClock, levels, *, overrun_s: float = 0.0, fail_at=None):
        self.clock = clock
        self.levels = list(levels)
        self.overrun_s = overrun_s
        self.fail_at = fail_at
        self.calls = []
        self.closed = False

    def acquire(self, frequency_hz, sample_rate, duration_s):
        index = len(self.calls)
        self.calls.append((frequency_hz, sample_rate, duration_s))
        if self.fail_at is not None and index == self.fail_at:
            raise DeviceError("radio unplugged")
        self.clock.now += duration_s + self.overrun_s
        level = self.levels[index] if index < len(self.levels) else QUIET
        if level is None:
            return np.empty(0, dtype=np.float64)
        return np.array([1.0, level])

    def close(self) -> None:
        self.closed = True


def _make_config(tmp_path, **overrides) -> ScanConfig:
    base = dict(
        instant_scan=False,
        start_after_duration=0,
        scan_duration=10,
        instant_output=str(tmp_path / "instant.json"),
        scheduled_output=str(tmp_path / "scheduled.json"),
    )
    base.update(overrides)
    return ScanConfig(**base)


def _make_runner(config, source, clock, **kwargs) -> ScanRunner:
    return ScanRunner(config, source_factory=lambda cfg: source, clock=clock, sleep=clock.sleep, **kwargs)


def test_scheduled_scan_merges_detection_windows(tmp_path) -> None:
    clock = FakeClock()
    levels = [QUIET] * 10
    for idx in (2, 3, 4, 6):
        levels[idx] = LOUD
    source = ScriptedSource(clock, levels)
    runner = _make_runner(_make_config(tmp_path), source, clock)

    report = runner.run()

    detected = [(w.start_s, w.end_s) for w in runner.windows if w.detected]
    assert detected == [(2, 3), (3, 4), (4, 5), (6, 7)]
    assert report.windows == 10
    assert report.result.zwave_durations == "2-7"
    assert report.result.is_signal_detected is True
    assert report.result.max_signal_strength == pytest.approx(60.0)
    assert report.result.frequency == pytest.approx(868.4)
    assert source.closed is True
    assert source.calls[0] == (868_400_000, 10_000_000, 1)

    written = json.loads((tmp_path / "scheduled.json").read_text())
    assert list(written) == ["frequency", "is_signal_detected", "max_signal_strength", "zwave_durations"]
    assert written["zwave_durations"] == "2-7"
    assert "\n" in report.json_text


def test_scheduled_scan_without_detections(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [QUIET, 300.0, QUIET])
    runner = _make_runner(_make_config(tmp_path, scan_duration=3), source, clock)

    result = runner.run().result

    assert result.is_signal_detected is False
    assert result.zwave_durations == ""
    assert result.max_signal_strength == pytest.approx(20.0 * np.log10(300.0))


def test_scheduled_scan_separates_distant_detections(tmp_path) -> None:
    clock = FakeClock()
    levels = [QUIET] * 20
    levels[1] = LOUD
    levels[15] = LOUD
    source = ScriptedSource(clock, levels)
    runner = _make_runner(_make_config(tmp_path, scan_duration=20), source, clock)

    assert runner.run().result.zwave_durations == "1-2,15-16"


def test_final_partial_second_is_not_sampled(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [LOUD, LOUD, LOUD], overrun_s=0.5)
    runner = _make_runner(_make_config(tmp_path, scan_duration=3), source, clock)

    result = runner.run().result

    # windows start at 0.0 and 1.5; a third at 3.0 would not fit
    assert len(source.calls) == 2
    assert [w.start_s for w in runner.windows] == [0, 1]
    assert result.zwave_durations == "0-2"


def test_empty_windows_are_not_detected_and_leave_max_untouched(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [None, None, None])
    runner = _make_runner(_make_config(tmp_path, scan_duration=3), source, clock)

    result = runner.run().result

    assert result.is_signal_detected is False
    assert result.max_signal_strength == 0.0
    assert all(w.max_strength_db is None and w.sample_count == 0 for w in runner.windows)


def test_zero_duration_scan_runs_no_windows(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [])
    runner = _make_runner(_make_config(tmp_path, scan_duration=0), source, clock)

    report = runner.run()

    assert source.calls == []
    assert report.result.is_signal_detected is False
    assert report.result.zwave_durations == ""


def test_countdown_sleeps_once_per_second_before_sampling(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [LOUD, QUIET])
    runner = _make_runner(_make_config(tmp_path, start_after_duration=3, scan_duration=2), source, clock)

    result = runner.run().result

    assert clock.sleeps == [1.0, 1.0, 1.0]
    assert result.zwave_durations == "0-1"


def test_device_error_aborts_run_and_closes_source(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [LOUD] * 5, fail_at=2)
    runner = _make_runner(_make_config(tmp_path, scan_duration=5), source, clock)

    with pytest.raises(DeviceError):
        runner.run()

    assert source.closed is True
    assert not (tmp_path / "scheduled.json").exists()


def test_instant_scan_reports_hz_and_placeholder(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [LOUD])
    runner = _make_runner(_make_config(tmp_path, instant_scan=True), source, clock)

    report = runner.run()

    assert source.calls == [(868_400_000, 10_000_000, 5)]
    assert report.result.frequency == 868_400_000.0
    assert report.result.is_signal_detected is True
    assert report.result.max_signal_strength == pytest.approx(60.0)
    assert report.result.zwave_durations == "5"
    assert report.json_text == (tmp_path / "instant.json").read_text()
    assert "\n" not in report.json_text
    assert not (tmp_path / "scheduled.json").exists()


def test_instant_scan_with_byte_samples_stays_below_threshold(tmp_path) -> None:
    clock = FakeClock()

    class ByteSource(ScriptedSource):
        def acquire(self, frequency_hz, sample_rate, duration_s):
            self.calls.append((frequency_hz, sample_rate, duration_s))
            return np.array([0, 100, 255], dtype=np.uint8)

    source = ByteSource(clock, [])
    result = _make_runner(_make_config(tmp_path, instant_scan=True), source, clock).run().result

    assert result.is_signal_detected is False
    assert result.max_signal_strength == pytest.approx(20.0 * np.log10(255))


def test_instant_scan_with_no_samples(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [None])
    result = _make_runner(_make_config(tmp_path, instant_scan=True), source, clock).run().result

    assert result.is_signal_detected is False
    assert result.max_signal_strength == 0.0


def test_event_log_records_each_window(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [QUIET, LOUD])
    events = ScanEventLog(tmp_path / "events.jsonl")
    runner = _make_runner(_make_config(tmp_path, scan_duration=2), source, clock, events=events)

    runner.run()

    records = [json.loads(line) for line in (tmp_path / "events.jsonl").read_text().splitlines()]
    assert [r["event"] for r in records] == ["scan_start", "window", "window", "scan_complete"]
    assert records[2]["detected"] is True
    assert all(r["mode"] == "scheduled" and r["run_id"] == events.run_id for r in records)


def test_window_scheduler_stops_when_a_full_window_no_longer_fits() -> None:
    clock = FakeClock()
    slots = []
    for slot in WindowScheduler(3, 1.0, clock=clock):
        slots.append(slot)
        clock.now += 1.25
    assert [s.index for s in slots] == [0, 1]
    assert [s.start_s for s in slots] == [0, 1]


def test_window_scheduler_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        WindowScheduler(10, 0)
    with pytest.raises(ValueError):
        WindowScheduler(-1, 1)
    assert WindowScheduler(10, 1).count == 10


def test_event_log_start_and_summary_describe_the_run(tmp_path) -> None:
    clock = FakeClock()
    source = ScriptedSource(clock, [None, LOUD, QUIET])
    events = ScanEventLog(tmp_path / "events.jsonl")
    config = _make_config(tmp_path, scan_duration=3, driver="rtlsdr_native")

    _make_runner(config, source, clock, events=events).run()

    records = [json.loads(line) for line in (tmp_path / "events.jsonl").read_text().splitlines()]
    start, complete = records[0], records[-1]
    assert start["planned_windows"] == 3
    assert start["config"]["driver"] == "rtlsdr_native"
    assert start["config"]["scan_duration"] == 3
    assert complete["windows"] == 3
    assert complete["windows_with_samples"] == 2
    assert source.calls[0][1] == 2_400_000
