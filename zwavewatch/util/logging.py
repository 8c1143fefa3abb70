"""Logging setup shared by the scanner, drivers and CLI.

Every module logs through ``get_logger(__name__)`` into the ``zwavewatch``
logger tree. Scan context travels in ``extra=`` and is rendered by both
formatters:

    logger.info("Window analysed", extra={"window_index": 3, "frequency_hz": 868_400_000})

On the console this reads ``... Window analysed window_index=3 freq=868.400MHz``;
in the JSON-lines file each field becomes its own key.

``ZWAVEWATCH_DEBUG=1`` or ``ZWAVEWATCH_LOG_LEVEL`` pick the level when the
caller does not.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ROOT_LOGGER = "zwavewatch"

# Rendered in this order on the console.
CONTEXT_FIELDS = ("window_index", "frequency_hz", "driver", "duration_ms", "error_type")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


def _render_field(key: str, value: Any) -> str:
    if key == "frequency_hz" and isinstance(value, (int, float)):
        return f"freq={value / 1e6:.3f}MHz"
    return f"{key}={value}"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message and scan context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _record_time(record).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL module: message key=value ...`` for terminals."""

    COLORS = {
        logging.DEBUG: "\033[2m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        module = record.name[len(ROOT_LOGGER) + 1 :] if record.name.startswith(ROOT_LOGGER + ".") else record.name
        parts: List[str] = [
            _record_time(record).strftime("%H:%M:%S"),
            f"{record.levelname:<7}",
            f"{module}:",
            record.getMessage(),
        ]
        parts.extend(_render_field(key, value) for key, value in _context(record).items())
        line = " ".join(parts)
        color = self.COLORS.get(record.levelno) if self.use_color else None
        if color:
            line = f"{color}{line}{self.RESET}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


def _level_from_env() -> str:
    if os.environ.get("ZWAVEWATCH_DEBUG", "").strip().lower() in ("1", "true", "yes"):
        return "DEBUG"
    return os.environ.get("ZWAVEWATCH_LOG_LEVEL", "INFO")


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """(Re)install the console handler and, optionally, a JSON-lines file handler.

    Handlers from an earlier call are closed first, so the CLI can configure
    once per invocation.
    """
    numeric_level = getattr(logging, (level or _level_from_env()).upper(), logging.INFO)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(numeric_level)
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter(use_color=use_color))
    root.addHandler(console)

    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root.warning("Cannot open JSON log %s, logging to console only: %s", json_file, exc)
        else:
            file_handler.setFormatter(JSONFormatter())
            root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Return ``zwavewatch.<name>``, configuring defaults on first use."""
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    message: str,
    *,
    error_type: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log the exception being handled, tagged with ``error_type`` and context."""
    if error_type:
        extra["error_type"] = error_type
    logger.exception(message, extra=extra)
