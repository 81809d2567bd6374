"""Determinism verification for archgraph-core dependency graphs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from graph.builder import build_dependency_graph
from resolve.config import ProjectConfig, load_project_config

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contract.models import DependencyGraph, FileRecord

_SECTIONS = ("nodes", "edges", "cycles")


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)


def canonical_section(graph: DependencyGraph, section: str) -> bytes:
    """Serialize one graph section to orjson bytes, preserving order."""
    value = getattr(graph, section)
    if isinstance(value, Mapping):
        payload = [item.model_dump(mode="json") for item in value.values()]
    else:
        payload = [item.model_dump(mode="json") for item in value]
    return orjson.dumps(payload)


def verify_determinism(
    files: Iterable[FileRecord],
    *,
    project_config: ProjectConfig | None = None,
    project_root: Path | None = None,
) -> DeterminismResult:
    """Verify that building the graph twice yields identical output.

    Project configuration is loaded once and shared by both builds, so the
    comparison isolates the graph assembly itself. Nodes, edges and cycles
    are compared byte-for-byte, order included.

    Args:
        files: File records to build from.
        project_config: Pre-loaded resolution configuration.
        project_root: Directory to load configuration from when
            ``project_config`` is not given.

    Returns:
        DeterminismResult with ok status and the names of mismatched sections.
    """
    records = list(files)
    if project_config is None:
        project_config = (
            load_project_config(Path(project_root))
            if project_root is not None
            else ProjectConfig()
        )

    first = build_dependency_graph(records, project_config=project_config)
    second = build_dependency_graph(records, project_config=project_config)

    mismatches = tuple(
        section
        for section in _SECTIONS
        if canonical_section(first, section) != canonical_section(second, section)
    )
    return DeterminismResult(ok=not mismatches, mismatches=mismatches)


__all__ = ["DeterminismResult", "canonical_section", "verify_determinism"]
