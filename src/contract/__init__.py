"""Stable record types exchanged between archgraph-core and its callers.

Treat these exports as the authoritative boundary: scanners produce
``FileRecord``s, the decision pipeline produces ``Decision``s, and the
persistence layer stores ``Snapshot``s.
"""

from contract.models import (
    ChangeContext,
    CircularDependency,
    CouplingMetrics,
    CustomRule,
    Decision,
    DependencyGraph,
    DependencyStats,
    DriftEvent,
    DriftResult,
    Edge,
    Evidence,
    FileRecord,
    GraphNode,
    LayerViolation,
    Snapshot,
    TrendDataPoint,
    TrendSummary,
    Violation,
)

__all__ = [
    "ChangeContext",
    "CircularDependency",
    "CouplingMetrics",
    "CustomRule",
    "Decision",
    "DependencyGraph",
    "DependencyStats",
    "DriftEvent",
    "DriftResult",
    "Edge",
    "Evidence",
    "FileRecord",
    "GraphNode",
    "LayerViolation",
    "Snapshot",
    "TrendDataPoint",
    "TrendSummary",
    "Violation",
]
