"""Coupling metrics (Robert C. Martin) for dependency graph nodes.

- Afferent coupling (Ca): number of modules importing this module.
- Efferent coupling (Ce): number of modules this module imports.
- Instability (I): Ce / (Ca + Ce); 0 when the module is isolated.
- Abstractness (A): abstract types / all declared types; 0 with no types.
- Distance from the main sequence (D): |A + I - 1|.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from contract.models import CouplingMetrics
from utils import round3

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from contract.models import FileRecord, GraphNode


def instability(afferent: int, efferent: int) -> float:
    total = afferent + efferent
    return efferent / total if total > 0 else 0.0


def abstractness(record: FileRecord | None) -> float:
    """Abstract share of a file's declared types.

    Interfaces and abstract classes count as abstract; concrete classes and
    type aliases as concrete. The four counts are treated as disjoint.
    """
    if record is None:
        return 0.0
    abstract_count = record.interfaces + record.abstract_classes
    total = abstract_count + record.concrete_classes + record.type_aliases
    return abstract_count / total if total > 0 else 0.0


def compute_coupling_metrics(
    nodes: Mapping[str, GraphNode],
    files: Mapping[str, FileRecord],
) -> dict[str, CouplingMetrics]:
    """Compute Ca, Ce, I, A and D for every node, rounded to 3 decimals."""
    metrics: dict[str, CouplingMetrics] = {}
    for path, node in nodes.items():
        ca = len(node.imported_by)
        ce = len(node.imports)
        i = instability(ca, ce)
        a = abstractness(files.get(path))
        metrics[path] = CouplingMetrics(
            afferent=ca,
            efferent=ce,
            instability=round3(i),
            abstractness=round3(a),
            distance=round3(abs(a + i - 1)),
        )
    return metrics


def compute_coupling_scores(nodes: Mapping[str, GraphNode]) -> dict[str, float]:
    """Legacy normalized score: min(1, (Ca + Ce) / total modules).

    Kept only for backward-compatible reporting.
    """
    total = len(nodes)
    if total == 0:
        return {}
    return {
        path: min((len(node.imported_by) + len(node.imports)) / total, 1.0)
        for path, node in nodes.items()
    }


def average(values: Iterable[float]) -> float:
    collected = list(values)
    return sum(collected) / len(collected) if collected else 0.0


__all__ = [
    "abstractness",
    "average",
    "compute_coupling_metrics",
    "compute_coupling_scores",
    "instability",
]
