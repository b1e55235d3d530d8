"""Depth/path bookkeeping for nested graphs."""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import GraphNotFoundError
from .schemas import GraphRecord

logger = logging.getLogger(__name__)


def index_by_id(graphs: Sequence[GraphRecord]) -> Dict[str, GraphRecord]:
    return {graph.id: graph for graph in graphs}


def derive_depth_and_path(
    parent_id: Optional[str],
    graphs: Sequence[GraphRecord],
) -> Tuple[int, List[str]]:
    """Return ``(depth, path)`` for a graph placed under ``parent_id``.

    Raises:
        GraphNotFoundError: If the parent is not in ``graphs``.
    """
    if parent_id is None:
        return 0, []
    parent = index_by_id(graphs).get(parent_id)
    if parent is None:
        raise GraphNotFoundError(parent_id, f"Parent graph {parent_id} not found")
    return parent.depth + 1, [*parent.path, parent_id]


def children_of(graph_id: str, graphs: Sequence[GraphRecord]) -> List[GraphRecord]:
    return [graph for graph in graphs if graph.parent_graph_id == graph_id]


def descendants_of(graph_id: str, graphs: Sequence[GraphRecord]) -> List[GraphRecord]:
    """All descendants, breadth-first, so parents always precede their children."""
    found: List[GraphRecord] = []
    seen = {graph_id}
    queue = deque([graph_id])
    while queue:
        current = queue.popleft()
        for child in children_of(current, graphs):
            if child.id in seen:
                logger.warning(f"Cycle detected at graph {child.id}, not descending further")
                continue
            seen.add(child.id)
            found.append(child)
            queue.append(child.id)
    return found


def is_descendant(candidate_id: str, ancestor_id: str, graphs: Sequence[GraphRecord]) -> bool:
    return any(graph.id == candidate_id for graph in descendants_of(ancestor_id, graphs))


def ancestor_chain(graph_id: str, graphs: Sequence[GraphRecord]) -> Tuple[List[str], bool]:
    """Walk ``parent_graph_id`` links upward.

    Returns the ancestor ids from root to direct parent and whether the walk hit
    a cycle. Walking stops at the first missing parent.
    """
    by_id = index_by_id(graphs)
    chain: List[str] = []
    seen = {graph_id}
    current = by_id.get(graph_id)
    while current is not None and current.parent_graph_id is not None:
        parent_id = current.parent_graph_id
        if parent_id in seen:
            return list(reversed(chain)), True
        seen.add(parent_id)
        chain.append(parent_id)
        current = by_id.get(parent_id)
    return list(reversed(chain)), False


def find_invariant_violations(graphs: Sequence[GraphRecord]) -> List[str]:
    """Describe every record breaking the depth/path/acyclicity invariants."""
    by_id = index_by_id(graphs)
    problems: List[str] = []
    for graph in graphs:
        if graph.depth != len(graph.path):
            problems.append(
                f"{graph.id}: depth {graph.depth} != len(path) {len(graph.path)}"
            )
        if graph.parent_graph_id is None:
            if graph.depth != 0 or graph.path:
                problems.append(f"{graph.id}: root graph must have depth 0 and empty path")
        else:
            parent = by_id.get(graph.parent_graph_id)
            if parent is None:
                problems.append(f"{graph.id}: parent {graph.parent_graph_id} is missing")
            elif graph.path != [*parent.path, parent.id]:
                problems.append(
                    f"{graph.id}: path {graph.path} does not extend parent path {parent.path}"
                )
        _, cyclic = ancestor_chain(graph.id, graphs)
        if cyclic:
            problems.append(f"{graph.id}: ancestor chain contains a cycle")
    return problems


__all__ = [
    "ancestor_chain",
    "children_of",
    "derive_depth_and_path",
    "descendants_of",
    "find_invariant_violations",
    "index_by_id",
    "is_descendant",
]
