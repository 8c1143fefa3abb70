"""Structured scan event log (JSON lines)."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Optional

from zwavewatch.util.logging import get_logger
from zwavewatch.util.time import utc_now_str

logger = get_logger(__name__)


class ScanEventLog:
    """Append one JSON record per scan event to ``log_path``.

    Event logging is auxiliary: a failed write is reported once through the
    regular logger and further events are dropped, the scan itself carries on.
    """

    def __init__(self, log_path: Path):
        self.log_path = log_path
        self.run_id = f"run-{int(time.time() * 1000)}-pid{os.getpid()}"
        self.mode: Optional[str] = None
        self._disabled = False
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Cannot create directory for event log %s: %s", self.log_path, exc)
            self._disabled = True

    @classmethod
    def from_path(cls, path: Optional[str]) -> Optional["ScanEventLog"]:
        if not path:
            return None
        return cls(Path(path).expanduser())

    def start_scan(self, mode: str, **metadata: Any) -> None:
        self.mode = mode
        self.log("scan_start", **metadata)

    def log(self, event: str, **fields: Any) -> None:
        if self._disabled:
            return
        record = {
            "ts": utc_now_str(),
            "run_id": self.run_id,
            "mode": self.mode,
            "event": event,
            **fields,
        }
        try:
            with self.log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record) + "\n")
        except OSError as exc:
            logger.warning("Disabling event log %s after write failure: %s", self.log_path, exc)
            self._disabled = True
