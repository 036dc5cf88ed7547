
"""Typed records for the parts of Semgrep's JSON report the toolkit reads."""
from typing import TYPE_CHECKING, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue

if TYPE_CHECKING:
    from packages.hitmap.aggregate import HitMapRow

Metadata = Dict[str, JsonValue]


class _Record(BaseModel):
    # Semgrep adds fields between releases; unknown keys are dropped.
    model_config = ConfigDict(extra="ignore", frozen=True)


class Position(_Record):
    line: int = Field(ge=0)
    col: int = Field(ge=0)
    offset: int = Field(default=0, ge=0)


class PropagatedValue(_Record):
    """Constant value Semgrep proved a metavariable holds."""

    svalue_abstract_content: str
    svalue_start: Optional[Position] = None
    svalue_end: Optional[Position] = None


class MetavarValue(_Record):
    """Binding captured for one metavariable of a match."""

    abstract_content: str
    propagated_value: Optional[PropagatedValue] = None
    start: Optional[Position] = None
    end: Optional[Position] = None

    @property
    def value(self) -> str:
        """Propagated value when constant propagation succeeded, else the matched text."""

        if self.propagated_value is not None:
            return self.propagated_value.svalue_abstract_content
        return self.abstract_content


class MatchExtra(_Record):
    message: str = ""
    severity: str = ""
    lines: str = ""
    fingerprint: str = ""
    metavars: Dict[str, MetavarValue] = Field(default_factory=dict)
    metadata: Metadata = Field(default_factory=dict)


class Match(_Record):
    """One finding reported by Semgrep."""

    check_id: str
    path: str
    start: Position
    end: Position
    extra: MatchExtra = Field(default_factory=MatchExtra)

    @property
    def rule_id(self) -> str:
        return self.check_id

    @property
    def file_path(self) -> str:
        return self.path

    @property
    def bindings(self) -> Dict[str, MetavarValue]:
        return self.extra.metavars

    @property
    def metadata(self) -> Metadata:
        return self.extra.metadata


class CliError(_Record):
    type: JsonValue = None
    level: str = "error"
    message: str = ""
    path: Optional[str] = None


class ScannedPaths(_Record):
    scanned: List[str] = Field(default_factory=list)


class ScanOutput(_Record):
    """Deserialized Semgrep report. ``results`` keeps scanner emission order."""

    version: Optional[str] = None
    results: List[Match] = Field(default_factory=list)
    errors: List[CliError] = Field(default_factory=list)
    paths: ScannedPaths = Field(default_factory=ScannedPaths)

    def rule_id_hit_map(self, sort_by_count: bool = True) -> "List[HitMapRow]":
        from packages.hitmap.aggregate import rule_id_hit_map

        return rule_id_hit_map(self.results, sort_by_count)

    def file_path_hit_map(self, sort_by_count: bool = True) -> "List[HitMapRow]":
        from packages.hitmap.aggregate import file_path_hit_map

        return file_path_hit_map(self.results, sort_by_count)

    def rule_id_text_report(self, sort_by_count: bool = True) -> str:
        from packages.hitmap.table import text_report

        return text_report(self.results, "rule", sort_by_count)

    def file_path_text_report(self, sort_by_count: bool = True) -> str:
        from packages.hitmap.table import text_report

        return text_report(self.results, "file", sort_by_count)
