"""Exception hierarchy for ZWaveWatch.

Every error here is fatal for the scan run that raised it; the CLI maps
each class onto a documented exit code (see ``zwavewatch.util.exit_codes``).
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ZWaveWatchError(Exception):
    """Base class for all ZWaveWatch errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause


class ConfigError(ZWaveWatchError):
    """Raised when the scan configuration is missing or invalid."""


class DeviceError(ZWaveWatchError):
    """Raised when the sample source cannot be opened, configured, or read."""


class OutputError(ZWaveWatchError):
    """Raised when a scan result cannot be persisted."""
