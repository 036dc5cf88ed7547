"""CSV exporter for hit-map rows."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Sequence

from packages.hitmap.aggregate import HitMapRow


def write_csv(path: Path, rows: Iterable[HitMapRow], headers: Sequence[str]) -> None:
    """Write hit-map rows to ``path`` under ``headers``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(list(headers))
        for row in rows:
            writer.writerow([row.key, row.count])


__all__ = ["write_csv"]
