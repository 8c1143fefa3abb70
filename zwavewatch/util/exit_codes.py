"""Documented exit codes for the ZWaveWatch CLI.

Exit codes follow UNIX conventions:
- 0: Success
- 1: General/unspecified error
- 2: Invalid command-line arguments or usage
- 3-5: Application-specific errors
- 130: Interrupted by SIGINT

Usage:
    from zwavewatch.util.exit_codes import ExitCode
    sys.exit(ExitCode.DEVICE_UNAVAILABLE)
"""

from __future__ import annotations

from zwavewatch.util.errors import ConfigError, DeviceError, OutputError


class ExitCode:
    """Exit code constants for ZWaveWatch processes.

    Attributes:
        SUCCESS: Scan completed and its result was written.
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Command-line argument validation failed.
        CONFIG_ERROR: Configuration file missing, unreadable, or invalid.
        DEVICE_UNAVAILABLE: Sample source could not be opened or read.
        OUTPUT_ERROR: Result file could not be written.
        INTERRUPTED: Run cancelled with Ctrl-C; no result written.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    CONFIG_ERROR: int = 3
    DEVICE_UNAVAILABLE: int = 4
    OUTPUT_ERROR: int = 5
    INTERRUPTED: int = 130

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments",
            cls.CONFIG_ERROR: "Configuration error",
            cls.DEVICE_UNAVAILABLE: "SDR device unavailable",
            cls.OUTPUT_ERROR: "Result output error",
            cls.INTERRUPTED: "Interrupted",
        }
        return messages.get(code, f"Unknown exit code {code}")

    @classmethod
    def for_error(cls, exc: BaseException) -> int:
        """Map a raised exception onto its exit code."""
        if isinstance(exc, ConfigError):
            return cls.CONFIG_ERROR
        if isinstance(exc, DeviceError):
            return cls.DEVICE_UNAVAILABLE
        if isinstance(exc, OutputError):
            return cls.OUTPUT_ERROR
        return cls.GENERAL_ERROR
