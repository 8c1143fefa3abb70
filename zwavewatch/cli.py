#!/usr/bin/env python3
"""ZWaveWatch scanner CLI entrypoint (package module)."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from zwavewatch.io.config import DEFAULT_CONFIG_PATH, ScanConfig, load_config
from zwavewatch.sweep.runner import ScanRunner
from zwavewatch.util.duration import parse_duration_to_seconds
from zwavewatch.util.errors import ZWaveWatchError
from zwavewatch.util.exit_codes import ExitCode
from zwavewatch.util.logging import configure_logging, get_logger, log_exception
from zwavewatch.util.scan_logger import ScanEventLog


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(
        description="Detect Z-Wave (868.4 MHz) activity with an SDR and report when it was seen",
    )
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help=f"JSON configuration file (default {DEFAULT_CONFIG_PATH})")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--instant", dest="instant_scan", action="store_const", const=True, help="Run a single instant scan")
    mode.add_argument("--scheduled", dest="instant_scan", action="store_const", const=False, help="Run a scheduled multi-window scan")

    p.add_argument("--start-after", dest="start_after", type=parse_duration_to_seconds, help="Countdown before a scheduled scan (e.g. '10', '1m')")
    p.add_argument("--scan-duration", dest="scan_duration", type=parse_duration_to_seconds, help="Scheduled scan length (e.g. '60', '5m')")
    p.add_argument("--driver", type=str, help="Soapy driver key (e.g. hackrf), 'rtlsdr_native', or 'replay'")
    p.add_argument("--replay", dest="replay_path", type=str, help="Raw 8-bit I/Q capture to analyse instead of a live radio (implies --driver replay)")
    p.add_argument("--output", type=str, help="Result file for the selected scan mode")
    p.add_argument("--log-level", dest="log_level", type=str, help="Console log level (default INFO)")
    p.add_argument("--log-json", dest="log_json", type=str, help="Also write JSON-lines logs to this path")
    p.add_argument("--events-jsonl", dest="events_jsonl", type=str, help="Append per-window scan events as JSON lines to this path")

    args = p.parse_args(argv)
    if args.replay_path and args.driver not in (None, "replay"):
        p.error("--replay cannot be combined with --driver other than 'replay'")
    return args


def apply_overrides(config: ScanConfig, args: argparse.Namespace) -> ScanConfig:
    driver = args.driver
    if args.replay_path:
        driver = "replay"
    instant = config.instant_scan if args.instant_scan is None else args.instant_scan
    output_field = "instant_output" if instant else "scheduled_output"
    return config.with_overrides(
        instant_scan=args.instant_scan,
        start_after_duration=args.start_after,
        scan_duration=args.scan_duration,
        driver=driver,
        replay_path=args.replay_path,
        **{output_field: args.output},
    )


def run(args: argparse.Namespace) -> int:
    """Load configuration, run the selected scan, and return an exit code."""
    logger = get_logger(__name__)
    try:
        config = apply_overrides(load_config(args.config), args)
        runner = ScanRunner(config, events=ScanEventLog.from_path(args.events_jsonl))
        report = runner.run()
    except KeyboardInterrupt:
        logger.warning("Scan interrupted, no result written")
        return ExitCode.INTERRUPTED
    except ZWaveWatchError as exc:
        code = ExitCode.for_error(exc)
        log_exception(logger, f"{ExitCode.message(code)}: {exc.message}", error_type=type(exc).__name__)
        return code
    print(report.json_text, flush=True)
    return ExitCode.SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level, json_file=args.log_json)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
