"""Plain-text rendering of hit-map rows."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import yaml

from packages.hitmap.aggregate import KEY_EXTRACTORS, HitMapRow, build_hit_map, sorted_rows
from packages.schema.models import Match

_COLUMNS_PATH = Path(__file__).with_name("columns.yaml")

HEADERS: Dict[str, Tuple[str, str]] = {
    view: tuple(names) for view, names in yaml.safe_load(_COLUMNS_PATH.read_text()).items()
}


def render_table(rows: Iterable[HitMapRow], headers: Sequence[str]) -> str:
    """Render rows as a two-column table sized to the widest cell of each column."""

    if len(headers) != 2:
        raise ValueError(f"expected 2 headers, got {len(headers)}")

    cells: List[Tuple[str, str]] = [(str(key), str(count)) for key, count in rows]
    key_width = max([len(headers[0])] + [len(key) for key, _ in cells])
    count_width = max([len(headers[1])] + [len(count) for _, count in cells])

    lines = [
        f"{headers[0]:<{key_width}}  {headers[1]:>{count_width}}",
        f"{'-' * key_width}  {'-' * count_width}",
    ]
    for key, count in cells:
        lines.append(f"{key:<{key_width}}  {count:>{count_width}}")
    return "\n".join(lines) + "\n"


def text_report(results: Iterable[Match], view: str, sort_by_count: bool = True) -> str:
    """Build, sort and render the ``view`` ("rule" or "file") hit map of ``results``."""

    if view not in KEY_EXTRACTORS:
        raise ValueError(f"Unsupported view '{view}'. Expected one of {sorted(KEY_EXTRACTORS)}")
    rows = sorted_rows(build_hit_map(results, KEY_EXTRACTORS[view]), sort_by_count)
    return render_table(rows, HEADERS[view])


__all__ = ["HEADERS", "render_table", "text_report"]
