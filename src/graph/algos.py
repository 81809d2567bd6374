"""Graph algorithms for archgraph-core dependency graphs."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from contract.models import CircularDependency

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from contract.models import DependencyGraph, GraphNode

WHITE = 0
GRAY = 1
BLACK = 2


class _CycleSearchState:
    """Mutable state container for the three-color depth-first search."""

    def __init__(self, adjacency: Mapping[str, Sequence[str]]) -> None:
        self.adjacency = adjacency
        self.colors: dict[str, int] = dict.fromkeys(adjacency, WHITE)
        self.parent: dict[str, str] = {}
        self.cycles: list[CircularDependency] = []


def _record_cycle(state: _CycleSearchState, current: str, ancestor: str) -> None:
    """Record the cycle closed by the back-edge ``current -> ancestor``."""
    walk = [ancestor]
    node = current
    while node != ancestor:
        walk.append(node)
        node = state.parent.get(node, ancestor)
    walk.append(ancestor)
    walk.reverse()

    state.cycles.append(
        CircularDependency(files=tuple(dict.fromkeys(walk)), cycle=tuple(walk))
    )


def _visit(state: _CycleSearchState, root: str) -> None:
    """Depth-first walk from ``root`` using an explicit work stack.

    Each stack frame is (node, index of the next neighbour to examine), which
    reproduces recursive visiting order without native recursion.
    """
    state.colors[root] = GRAY
    stack: list[tuple[str, int]] = [(root, 0)]

    while stack:
        node, index = stack[-1]
        neighbours = state.adjacency.get(node, ())

        if index >= len(neighbours):
            state.colors[node] = BLACK
            stack.pop()
            continue

        stack[-1] = (node, index + 1)
        neighbour = neighbours[index]
        color = state.colors.get(neighbour)
        if color is None:
            continue
        if color == GRAY:
            _record_cycle(state, node, neighbour)
        elif color == WHITE:
            state.parent[neighbour] = node
            state.colors[neighbour] = GRAY
            stack.append((neighbour, 0))


def find_cycles(adjacency: Mapping[str, Sequence[str]]) -> list[CircularDependency]:
    """Find circular dependencies with a three-color depth-first search.

    Every back-edge yields its own entry, so overlapping cycles through a
    shared node are reported separately rather than merged into one
    strongly connected component.

    Args:
        adjacency: Node -> ordered import targets. Targets that are not
            themselves keys are ignored.

    Returns:
        Cycles in discovery order (node insertion order, then import order).
    """
    state = _CycleSearchState(adjacency)
    for node in adjacency:
        if state.colors[node] == WHITE:
            _visit(state, node)
    return state.cycles


def get_subgraph(graph: DependencyGraph, target: str, depth: int) -> list[GraphNode]:
    """Return nodes reachable from ``target`` within ``depth`` hops.

    Both directions are followed (imports and importers). The target itself
    is at depth 0; an unknown target yields an empty list.
    """
    if target not in graph.nodes or depth < 0:
        return []

    visited = {target}
    result: list[GraphNode] = []
    queue: deque[tuple[str, int]] = deque([(target, 0)])

    while queue:
        path, current_depth = queue.popleft()
        node = graph.nodes[path]
        result.append(node)
        if current_depth == depth:
            continue
        for neighbour in (*node.imports, *node.imported_by):
            if neighbour in visited or neighbour not in graph.nodes:
                continue
            visited.add(neighbour)
            queue.append((neighbour, current_depth + 1))

    return result


__all__ = [
    "find_cycles",
    "get_subgraph",
]
