"""Typed records shared by the resolver, graph, rule and drift components.

Inputs coming from external collaborators (file records, decisions, diffs,
custom rules, prior snapshots) are validated here once; outputs produced by
the engine are frozen so they cannot be mutated after creation.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    field_validator,
    model_validator,
)

from utils import normalize_path

EdgeKind = Literal["style", "data", "module"]
ViolationSeverity = Literal["error", "warning", "info"]
DriftSeverity = Literal["high", "medium", "low"]
FileStatus = Literal["added", "modified", "deleted", "renamed"]
DriftEventType = Literal[
    "decision_lost",
    "decision_weakened",
    "new_violation_trend",
    "circular_dep_introduced",
    "decision_emerged",
    "layer_violation_introduced",
]

LANGUAGE_BY_SUFFIX: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".go": "go",
    ".java": "java",
    ".rs": "rust",
}


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class FileRecord(BaseModel):
    """One scanned source file: its imports and declared type counts."""

    path: str
    language: str | None = None
    imports: list[str] = Field(default_factory=list)
    interfaces: int = Field(default=0, ge=0)
    abstract_classes: int = Field(default=0, ge=0)
    concrete_classes: int = Field(default=0, ge=0)
    type_aliases: int = Field(default=0, ge=0)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        normalized = normalize_path(v)
        if not normalized:
            msg = "file record path must be non-empty"
            raise ValueError(msg)
        return normalized

    @model_validator(mode="after")
    def infer_language(self) -> FileRecord:
        if self.language is None:
            suffix = "." + self.path.rsplit(".", 1)[-1] if "." in self.path else ""
            self.language = LANGUAGE_BY_SUFFIX.get(suffix.lower())
        return self


class Evidence(BaseModel):
    """A code location supporting an architectural decision."""

    file_path: str
    line_start: int = 1
    line_end: int = 1
    snippet: str = ""
    explanation: str = ""


class Decision(BaseModel):
    """A documented architectural choice; ``title`` is its identity key."""

    title: str
    description: str = ""
    category: str = "structural"
    status: str = "detected"
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    constraints: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    id: str | None = None

    @field_validator("evidence", mode="before")
    @classmethod
    def coerce_evidence_paths(cls, v: object) -> object:
        """Accept bare file paths as evidence entries."""
        if isinstance(v, list):
            return [{"file_path": item} if isinstance(item, str) else item for item in v]
        return v


class CustomRule(BaseModel):
    """A user-defined regex rule scoped by allowed/forbidden directories."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    pattern: str
    allowed_in: list[str] = Field(default_factory=list, alias="allowedIn")
    not_allowed_in: list[str] = Field(default_factory=list, alias="notAllowedIn")
    severity: ViolationSeverity = "warning"


class ChangeContext(BaseModel):
    """One changed hunk of a diff."""

    file_path: str
    status: FileStatus = "modified"
    added_lines: list[str] = Field(default_factory=list)
    removed_lines: list[str] = Field(default_factory=list)
    context_lines: list[str] = Field(default_factory=list)
    new_imports: list[str] = Field(default_factory=list)
    line_start: int = 1
    line_end: int = 1


# ---------------------------------------------------------------------------
# Graph outputs
# ---------------------------------------------------------------------------


class GraphNode(_Frozen):
    path: str
    imports: tuple[str, ...] = ()
    imported_by: tuple[str, ...] = ()


class Edge(_Frozen):
    source: str
    target: str
    kind: EdgeKind = "module"


class CircularDependency(_Frozen):
    """One detected cycle: ``cycle`` starts and ends on the same file."""

    files: tuple[str, ...]
    cycle: tuple[str, ...]


class CouplingMetrics(_Frozen):
    """Robert C. Martin package metrics for one module."""

    afferent: int
    efferent: int
    instability: float = Field(ge=0.0, le=1.0)
    abstractness: float = Field(ge=0.0, le=1.0)
    distance: float = Field(ge=0.0, le=1.0)


class DependencyStats(_Frozen):
    total_modules: int = 0
    circular_deps: int = 0
    avg_coupling: float = 0.0
    avg_instability: float = 0.0
    avg_distance: float = 0.0


class DependencyGraph(_Frozen):
    """The whole-run dependency graph with cycles and coupling metrics.

    The per-file mappings are read-only views; they still serialize as dicts.
    """

    nodes: Mapping[str, GraphNode]
    edges: tuple[Edge, ...] = ()
    cycles: tuple[CircularDependency, ...] = ()
    coupling_scores: Mapping[str, float] = Field(
        default_factory=dict, validate_default=True
    )
    metrics: Mapping[str, CouplingMetrics] = Field(
        default_factory=dict, validate_default=True
    )
    total_modules: int = 0
    avg_coupling: float = 0.0
    avg_instability: float = 0.0
    avg_distance: float = 0.0

    @field_validator("nodes", "coupling_scores", "metrics", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("nodes", "coupling_scores", "metrics", mode="wrap")
    def _dump_mapping(
        self, value: Mapping[str, Any], handler: SerializerFunctionWrapHandler
    ) -> Any:
        return handler(dict(value))

    @property
    def stats(self) -> DependencyStats:
        return DependencyStats(
            total_modules=self.total_modules,
            circular_deps=len(self.cycles),
            avg_coupling=self.avg_coupling,
            avg_instability=self.avg_instability,
            avg_distance=self.avg_distance,
        )


# ---------------------------------------------------------------------------
# Rule outputs
# ---------------------------------------------------------------------------


class Violation(_Frozen):
    rule: str
    severity: ViolationSeverity
    message: str
    file_path: str
    line_start: int = 1
    line_end: int = 1
    suggestion: str | None = None
    decision: str | None = None


class LayerViolation(_Frozen):
    """A graph edge crossing a forbidden layer boundary."""

    source_file: str
    target_file: str
    source_layer: str
    target_layer: str
    import_statement: str = ""
    message: str = ""


# ---------------------------------------------------------------------------
# Drift
# ---------------------------------------------------------------------------


class Snapshot(_Frozen):
    """Point-in-time baseline of decisions and dependency statistics."""

    id: str = Field(default_factory=new_id)
    repo_id: str = ""
    commit: str = ""
    decisions: tuple[Decision, ...] = ()
    drift_score: int = 0
    stats: DependencyStats = Field(default_factory=DependencyStats)
    created_at: datetime = Field(default_factory=_utcnow)


class DriftEvent(_Frozen):
    type: DriftEventType
    severity: DriftSeverity
    description: str
    snapshot_id: str
    decision: str | None = None
    detected_at: datetime = Field(default_factory=_utcnow)


class DriftResult(_Frozen):
    score: int
    events: tuple[DriftEvent, ...] = ()
    snapshot: Snapshot


class TrendDataPoint(_Frozen):
    date: datetime
    drift_score: int
    decision_count: int
    circular_deps: int
    avg_coupling: float


TrendDirection = Literal["improving", "stable", "degrading"]


class TrendSummary(_Frozen):
    time_window: str
    start_date: datetime
    end_date: datetime
    data_points: tuple[TrendDataPoint, ...] = ()
    drift_trend: TrendDirection = "stable"
    avg_drift_score: float = 0.0
    decision_stability: float = 1.0
    coupling_trend: TrendDirection = "stable"
    top_drift_events: tuple[DriftEvent, ...] = ()


__all__ = [
    "LANGUAGE_BY_SUFFIX",
    "ChangeContext",
    "CircularDependency",
    "CouplingMetrics",
    "CustomRule",
    "Decision",
    "DependencyGraph",
    "DependencyStats",
    "DriftEvent",
    "DriftEventType",
    "DriftResult",
    "DriftSeverity",
    "Edge",
    "EdgeKind",
    "Evidence",
    "FileRecord",
    "FileStatus",
    "GraphNode",
    "LayerViolation",
    "Snapshot",
    "TrendDataPoint",
    "TrendDirection",
    "TrendSummary",
    "Violation",
    "ViolationSeverity",
    "new_id",
]
