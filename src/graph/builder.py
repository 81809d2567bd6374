"""Dependency graph builder for archgraph-core."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from contract.models import DependencyGraph, Edge, GraphNode
from graph.algos import find_cycles
from graph.metrics import average, compute_coupling_metrics, compute_coupling_scores
from logs import get_logger
from resolve.config import ProjectConfig, load_project_config
from resolve.imports import ResolutionContext, detect_import_kind, resolve_import
from utils import round3

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contract.models import FileRecord

logger = get_logger("graph.builder")


def _index_files(files: Iterable[FileRecord]) -> dict[str, FileRecord]:
    """Index records by path; the first record for a path wins."""
    indexed: dict[str, FileRecord] = {}
    for record in files:
        indexed.setdefault(record.path, record)
    return indexed


def collect_edges(
    files: dict[str, FileRecord],
    context: ResolutionContext,
) -> tuple[dict[str, list[str]], dict[str, list[str]], list[Edge]]:
    """Resolve every import and collect forward, reverse and edge records.

    Self-imports and unresolved (external) imports produce nothing. Forward
    and reverse lists are deduplicated in first-seen order; every resolved
    import appends its own edge record.
    """
    imports: dict[str, list[str]] = {path: [] for path in files}
    imported_by: dict[str, list[str]] = {path: [] for path in files}
    edges: list[Edge] = []
    seen: set[tuple[str, str]] = set()

    for source, record in files.items():
        for raw_import in record.imports:
            target = resolve_import(source, raw_import, context)
            if target is None or target == source:
                continue
            if (source, target) not in seen:
                seen.add((source, target))
                imports[source].append(target)
                imported_by[target].append(source)
            edges.append(
                Edge(source=source, target=target, kind=detect_import_kind(raw_import))
            )

    return imports, imported_by, edges


def build_dependency_graph(
    files: Iterable[FileRecord],
    *,
    project_root: Path | str | None = None,
    project_config: ProjectConfig | None = None,
) -> DependencyGraph:
    """Build the dependency graph for one analysis run.

    Args:
        files: Scanned file records (paths relative to the project root)
        project_root: Directory holding the optional tsconfig.json,
            pnpm-workspace.yaml and go.mod; read once when
            ``project_config`` is not supplied
        project_config: Pre-loaded resolution configuration

    Returns:
        An immutable DependencyGraph with cycles and coupling metrics.
    """
    records = _index_files(files)

    if project_config is None:
        project_config = (
            load_project_config(Path(project_root))
            if project_root is not None
            else ProjectConfig()
        )

    context = ResolutionContext.from_records(records.values(), project_config)
    imports, imported_by, edges = collect_edges(records, context)

    nodes = {
        path: GraphNode(
            path=path,
            imports=tuple(imports[path]),
            imported_by=tuple(imported_by[path]),
        )
        for path in records
    }

    cycles = find_cycles(imports)
    coupling_scores = compute_coupling_scores(nodes)
    metrics = compute_coupling_metrics(nodes, records)

    graph = DependencyGraph(
        nodes=nodes,
        edges=tuple(edges),
        cycles=tuple(cycles),
        coupling_scores=coupling_scores,
        metrics=metrics,
        total_modules=len(nodes),
        avg_coupling=average(coupling_scores.values()),
        avg_instability=round3(average(m.instability for m in metrics.values())),
        avg_distance=round3(average(m.distance for m in metrics.values())),
    )
    logger.debug(
        "Built dependency graph: %d modules, %d edges, %d cycles",
        graph.total_modules,
        len(graph.edges),
        len(graph.cycles),
    )
    return graph


__all__ = ["build_dependency_graph", "collect_edges"]
