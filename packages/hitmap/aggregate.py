"""Frequency tables of Semgrep matches keyed by rule id or file path."""
from __future__ import annotations

from collections import Counter
from typing import Callable, Dict, Iterable, List, NamedTuple

from packages.schema.models import Match

KeyExtractor = Callable[[Match], str]


class HitMapRow(NamedTuple):
    key: str
    count: int


def rule_id_key(match: Match) -> str:
    return match.rule_id


def file_path_key(match: Match) -> str:
    return match.file_path


def build_hit_map(results: Iterable[Match], key: KeyExtractor) -> Dict[str, int]:
    """Count matches per ``key(match)``. Keys with no matches never appear."""

    return dict(Counter(key(match) for match in results))


def sorted_rows(hit_map: Dict[str, int], sort_by_count: bool = True) -> List[HitMapRow]:
    """Order a hit map into rows.

    With ``sort_by_count`` rows go by descending count, ties by ascending key.
    Otherwise rows go by ascending key only.
    """

    rows = [HitMapRow(key, count) for key, count in hit_map.items()]
    if sort_by_count:
        rows.sort(key=lambda row: (-row.count, row.key))
    else:
        rows.sort(key=lambda row: row.key)
    return rows


def rule_id_hit_map(results: Iterable[Match], sort_by_count: bool = True) -> List[HitMapRow]:
    return sorted_rows(build_hit_map(results, rule_id_key), sort_by_count)


def file_path_hit_map(results: Iterable[Match], sort_by_count: bool = True) -> List[HitMapRow]:
    return sorted_rows(build_hit_map(results, file_path_key), sort_by_count)


KEY_EXTRACTORS: Dict[str, KeyExtractor] = {
    "rule": rule_id_key,
    "file": file_path_key,
}


__all__ = [
    "HitMapRow",
    "KEY_EXTRACTORS",
    "KeyExtractor",
    "build_hit_map",
    "file_path_hit_map",
    "file_path_key",
    "rule_id_hit_map",
    "rule_id_key",
    "sorted_rows",
]
