"""Write hit-map rows as JSON Lines records."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from packages.hitmap.aggregate import HitMapRow


def write_jsonl(path: Path, rows: Iterable[HitMapRow], view: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            record = {"view": view, "key": row.key, "count": row.count}
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")


__all__ = ["write_jsonl"]
