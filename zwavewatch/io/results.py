"""Persist scan results as JSON documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from zwavewatch.detection.types import ScanResult
from zwavewatch.util.errors import OutputError
from zwavewatch.util.logging import get_logger

logger = get_logger(__name__)


def serialize_result(result: ScanResult, *, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(result.to_dict(), indent=2)
    return json.dumps(result.to_dict(), separators=(",", ":"))


def write_result(result: ScanResult, path: Union[str, Path], *, pretty: bool = False) -> str:
    """Write ``result`` to ``path``, replacing any previous file, and return the JSON text."""
    text = serialize_result(result, pretty=pretty)
    target = Path(path)
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutputError(f"cannot write result to {target}: {exc}", details={"path": str(target)}, cause=exc) from exc
    logger.info("Wrote scan result to %s", target)
    return text
