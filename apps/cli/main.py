
"""Typer CLI entrypoint for semreport."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import typer
from pydantic import JsonValue
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from packages.accessors.lookup import (
    AmbiguousBinding,
    BindingNotFound,
    MetadataKeyNotFound,
    canonical_name,
    resolve_binding,
    resolve_metadata,
)
from packages.exporters.csv import write_csv
from packages.exporters.jsonl import write_jsonl
from packages.hitmap.aggregate import KEY_EXTRACTORS, HitMapRow, build_hit_map, sorted_rows
from packages.hitmap.table import HEADERS, render_table
from packages.schema.models import ScanOutput
from packages.semgrep_adapter.load_output import load_output

app = typer.Typer(add_completion=False)
console = Console()

_LOG = logging.getLogger(__name__)


class DebugTrace:
    """JSONL trace of a report run; a no-op when no path is given."""

    def __init__(self, path: Optional[Path]):
        self._path = path
        self._handle = None

    def __enter__(self) -> "DebugTrace":
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self._path.open("w", encoding="utf-8")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._handle:
            self._handle.close()
            self._handle = None

    def event(self, name: str, **fields: object) -> None:
        if not self._handle:
            return
        entry = {"timestamp": datetime.now(timezone.utc).isoformat(), "event": name, **fields}
        self._handle.write(json.dumps(entry, ensure_ascii=False) + "\n")
        self._handle.flush()

    def report_loaded(self, report: Path, output: ScanOutput) -> None:
        self.event(
            "report_loaded",
            path=str(report),
            version=output.version,
            results=len(output.results),
            errors=len(output.errors),
        )

    def hit_map(self, view: str, rows: Sequence[HitMapRow]) -> None:
        self.event(
            "hit_map",
            view=view,
            rows=[row._asdict() for row in rows],
            total=sum(row.count for row in rows),
        )

    def exit(self, code: int, output: ScanOutput) -> None:
        self.event("exit", code=code, results=len(output.results))


_VALID_VIEWS = ("rule", "file")
_VALID_FORMATS = ("text", "table", "csv", "json")
_VALID_SORTS = ("count", "key")


def _normalize_choices(values: Sequence[str], valid: Sequence[str], default: Sequence[str], option: str) -> List[str]:
    if not values:
        return list(default)
    normalized = []
    for value in values:
        choice = value.lower()
        if choice not in valid:
            raise typer.BadParameter(
                f"Unsupported {option} '{value}'. Choose from {sorted(valid)}"
            )
        if choice not in normalized:
            normalized.append(choice)
    return normalized


def _load_report(report: Path, trace: DebugTrace) -> ScanOutput:
    try:
        output = load_output(report)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Failed to load Semgrep report: {escape(str(exc))}[/]")
        trace.event("error", stage="load", message=str(exc))
        raise typer.Exit(code=2) from exc

    trace.report_loaded(report, output)
    if output.errors:
        message = f"report carries {len(output.errors)} Semgrep error(s); results may be incomplete."
        console.print(f"[yellow]Warning:[/] {message}")
        _LOG.warning(message)
        trace.event("warning", stage="load", message=message)
    return output


@app.command()
def hitmap(
    report: Path = typer.Option(..., "--input", help="Semgrep JSON report to summarize"),
    by: List[str] = typer.Option(
        list(_VALID_VIEWS), "--by", help="Repeatable option: rule, file"
    ),
    sort: str = typer.Option("count", "--sort", help="count|key"),
    format: List[str] = typer.Option(
        ["text"], "--format", help="Repeatable option: text, table, csv, json"
    ),
    out: Path = typer.Option(
        Path("artifacts/semreport"),
        "--out",
        envvar="SEMREPORT_OUT",
        help="Directory for csv/json exports",
    ),
    fail_on_findings: bool = typer.Option(
        False,
        "--fail-on-findings",
        help="Exit with code 1 when the report has any results",
    ),
    debug_log: Optional[Path] = typer.Option(
        None,
        "--debug-log",
        help="Write debug trace JSONL to this path",
    ),
) -> None:
    """Rank Semgrep results by rule id and by file path."""

    if sort.lower() not in _VALID_SORTS:
        raise typer.BadParameter(
            f"Unsupported sort '{sort}'. Choose from {sorted(_VALID_SORTS)}"
        )
    sort_by_count = sort.lower() == "count"
    views = _normalize_choices(by, _VALID_VIEWS, _VALID_VIEWS, "view")
    formats = _normalize_choices(format, _VALID_FORMATS, ["text"], "format")

    with DebugTrace(debug_log) as trace:
        console.log(f"Building hit maps: input={report} views={views} sort={sort} formats={formats}")
        trace.event("start", input=str(report), views=views, sort=sort, formats=formats)

        output = _load_report(report, trace)

        outputs: Dict[str, Path] = {}
        for view in views:
            rows = sorted_rows(build_hit_map(output.results, KEY_EXTRACTORS[view]), sort_by_count)
            trace.hit_map(view, rows)
            outputs.update(_export_rows(view, rows, formats=formats, out=out))

        trace.event("exports", paths={k: str(v) for k, v in outputs.items()})

        if fail_on_findings and output.results:
            console.print(f"[red]{len(output.results)} finding(s) reported[/]")
            trace.exit(1, output)
            raise typer.Exit(code=1)

        trace.exit(0, output)


@app.command()
def lookup(
    report: Path = typer.Option(..., "--input", help="Semgrep JSON report to read"),
    metavar: Optional[str] = typer.Option(None, "--metavar", help="Metavariable name, e.g. $X or x"),
    metadata: Optional[str] = typer.Option(None, "--metadata", help="Rule metadata key (exact)"),
    rule: Optional[str] = typer.Option(None, "--rule", help="Only matches of this rule id"),
) -> None:
    """Print a metavariable or metadata value for every match that has it."""

    if (metavar is None) == (metadata is None):
        raise typer.BadParameter("Pass exactly one of --metavar or --metadata")
    if metavar is not None:
        try:
            canonical_name(metavar)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc

    with DebugTrace(None) as trace:
        output = _load_report(report, trace)
    matches = [m for m in output.results if rule is None or m.rule_id == rule]

    missing = 0
    for match in matches:
        try:
            if metavar is not None:
                value: JsonValue = resolve_binding(match, metavar)
            else:
                value = resolve_metadata(match, metadata)
        except (BindingNotFound, MetadataKeyNotFound):
            missing += 1
            continue
        except AmbiguousBinding as exc:
            console.print(f"[red]{escape(str(exc))}[/]")
            raise typer.Exit(code=2) from exc
        typer.echo(f"{match.file_path}:{match.start.line}\t{match.rule_id}\t{_format_value(value)}")

    console.log(f"Resolved {len(matches) - missing} of {len(matches)} match(es)")


def _format_value(value: JsonValue) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _export_rows(
    view: str,
    rows: List[HitMapRow],
    *,
    formats: Sequence[str],
    out: Path,
) -> Dict[str, Path]:
    fmt_set = set(formats)
    headers = HEADERS[view]
    outputs: Dict[str, Path] = {}

    if "text" in fmt_set:
        typer.echo(render_table(rows, headers))

    if "table" in fmt_set:
        table = Table(title=f"{view} hits")
        table.add_column(headers[0])
        table.add_column(headers[1], justify="right")
        for row in rows:
            table.add_row(row.key, str(row.count))
        console.print(table)

    if "csv" in fmt_set:
        csv_path = out / f"{view}-hits.csv"
        write_csv(csv_path, rows, headers)
        outputs[f"{view}.csv"] = csv_path

    if "json" in fmt_set:
        json_path = out / f"{view}-hits.jsonl"
        write_jsonl(json_path, rows, view)
        outputs[f"{view}.json"] = json_path

    return outputs


if __name__ == "__main__":  # pragma: no cover - manual execution
    app()
