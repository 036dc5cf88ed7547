"""Adapter that reads Semgrep's JSON report into ``ScanOutput`` records."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from packages.schema.models import ScanOutput

_LOG = logging.getLogger(__name__)


class OutputDeserializationError(ValueError):
    """Raised when a report is not JSON or does not look like Semgrep output."""


def deserialize(data: Union[bytes, str]) -> ScanOutput:
    """Parse Semgrep's JSON output into a ``ScanOutput``."""

    try:
        output = ScanOutput.model_validate_json(data)
    except ValidationError as exc:
        raise OutputDeserializationError(
            f"failed to deserialize Semgrep's output: {exc.error_count()} error(s)"
        ) from exc

    _LOG.debug(
        "Loaded Semgrep %s report with %s result(s)",
        output.version or "unknown",
        len(output.results),
    )
    if output.errors:
        _LOG.warning("Semgrep reported %s error(s) during the scan", len(output.errors))
    return output


def load_output(path: Union[str, Path]) -> ScanOutput:
    """Read the report at ``path`` and deserialize it."""

    report = Path(path)
    if not report.is_file():
        raise FileNotFoundError(f"Semgrep report not found: {path}")
    return deserialize(report.read_bytes())


__all__ = ["OutputDeserializationError", "deserialize", "load_output"]
