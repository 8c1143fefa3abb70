"""Scan configuration dataclass and JSON loader."""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional, Union

from zwavewatch.detection.detector import DEFAULT_THRESHOLD_DB
from zwavewatch.detection.merge import DEFAULT_MERGE_GAP_S
from zwavewatch.util.errors import ConfigError
from zwavewatch.util.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = "config.json"

ZWAVE_EU_FREQUENCY_HZ = 868_400_000
DEFAULT_SAMPLE_RATE = 10_000_000
# RTL2832U dongles drop samples above about 2.4 MS/s.
DRIVER_SAMPLE_RATES = {"rtlsdr_native": 2_400_000}

REQUIRED_KEYS = ("instant_scan", "start_after_duration", "scan_duration")


@dataclass
class ScanConfig:
    instant_scan: bool
    start_after_duration: int
    scan_duration: int
    frequency_hz: int = ZWAVE_EU_FREQUENCY_HZ
    sample_rate: Optional[int] = None
    threshold_db: float = DEFAULT_THRESHOLD_DB
    merge_gap_s: int = DEFAULT_MERGE_GAP_S
    window_s: int = 1
    instant_duration_s: int = 5
    driver: str = "hackrf"
    device_args: Optional[str] = None
    replay_path: Optional[str] = None
    amp_enable: bool = True
    lna_gain_db: float = 16.0
    vga_gain_db: float = 20.0
    gain: Union[str, float] = "auto"
    instant_output: str = "zwave_instantdata.json"
    scheduled_output: str = "zwave_scheduledata.json"

    def with_overrides(self, **overrides: Any) -> "ScanConfig":
        """Return a validated copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        updated = replace(self, **changes)
        _validate(updated)
        return updated

    @property
    def effective_sample_rate(self) -> int:
        """Configured sample rate, or the default for ``driver`` when unset."""
        if self.sample_rate is not None:
            return self.sample_rate
        return DRIVER_SAMPLE_RATES.get(self.driver, DEFAULT_SAMPLE_RATE)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_INT_FIELDS = {
    "start_after_duration": 0,
    "scan_duration": 0,
    "frequency_hz": 1,
    "merge_gap_s": 0,
    "window_s": 1,
    "instant_duration_s": 1,
}
_FLOAT_FIELDS = ("threshold_db", "lna_gain_db", "vga_gain_db")
_BOOL_FIELDS = ("instant_scan", "amp_enable")
_STR_FIELDS = ("driver", "instant_output", "scheduled_output")
_OPTIONAL_STR_FIELDS = ("device_args", "replay_path")


def _validate(cfg: ScanConfig) -> None:
    for name in _BOOL_FIELDS:
        if not isinstance(getattr(cfg, name), bool):
            raise ConfigError(f"'{name}' must be a boolean", details={"field": name})
    for name, minimum in _INT_FIELDS.items():
        value = getattr(cfg, name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"'{name}' must be an integer", details={"field": name})
        if value < minimum:
            raise ConfigError(f"'{name}' must be >= {minimum}", details={"field": name, "value": value})
    rate = cfg.sample_rate
    if rate is not None and (isinstance(rate, bool) or not isinstance(rate, int) or rate < 1):
        raise ConfigError("'sample_rate' must be a positive integer", details={"field": "sample_rate"})
    for name in _FLOAT_FIELDS:
        value = getattr(cfg, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"'{name}' must be a number", details={"field": name})
        if not math.isfinite(value):
            raise ConfigError(f"'{name}' must be finite", details={"field": name, "value": str(value)})
    for name in _STR_FIELDS:
        value = getattr(cfg, name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"'{name}' must be a non-empty string", details={"field": name})
    for name in _OPTIONAL_STR_FIELDS:
        value = getattr(cfg, name)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"'{name}' must be a string", details={"field": name})
    gain = cfg.gain
    if isinstance(gain, bool) or not (isinstance(gain, (int, float)) or (isinstance(gain, str) and gain.lower() == "auto")):
        raise ConfigError("'gain' must be a number or \"auto\"", details={"field": "gain"})
    if not isinstance(gain, str) and not math.isfinite(gain):
        raise ConfigError("'gain' must be finite", details={"field": "gain"})
    if cfg.driver == "replay" and not cfg.replay_path:
        raise ConfigError("'replay_path' is required when driver is 'replay'", details={"field": "replay_path"})


def config_from_dict(payload: Dict[str, Any]) -> ScanConfig:
    if not isinstance(payload, dict):
        raise ConfigError("configuration must be a JSON object")
    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise ConfigError(f"missing configuration keys: {', '.join(missing)}", details={"missing": missing})
    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))
    cfg = ScanConfig(**{k: v for k, v in payload.items() if k in known})
    _validate(cfg)
    return cfg


def load_config(path: str = DEFAULT_CONFIG_PATH) -> ScanConfig:
    """Read and validate a JSON scan configuration file."""
    try:
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read configuration {path}: {exc}", details={"path": path}, cause=exc) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {path}: {exc}", details={"path": path}, cause=exc) from exc
    cfg = config_from_dict(payload)
    logger.debug("Loaded configuration from %s: %s", path, cfg)
    return cfg
