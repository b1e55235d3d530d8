"""Build the hierarchy view from the flat graph collection."""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence

from .permissions import permission_level
from .schemas import Actor, GraphRecord, HierarchyNode

logger = logging.getLogger(__name__)


def build_hierarchy(
    graphs: Sequence[GraphRecord],
    actor: Optional[Actor] = None,
) -> List[HierarchyNode]:
    """Return one tree per root graph (``depth == 0``).

    Siblings keep the order of ``graphs``. The transform is pure: the same
    collection always yields equal forests. A graph already on the current
    ancestor chain is skipped, so malformed parent links cannot recurse forever.
    """
    children_by_parent: Dict[str, List[GraphRecord]] = {}
    for graph in graphs:
        if graph.parent_graph_id is not None:
            children_by_parent.setdefault(graph.parent_graph_id, []).append(graph)

    return [
        _build_node(graph, children_by_parent, actor, frozenset())
        for graph in graphs
        if graph.depth == 0
    ]


def _build_node(
    graph: GraphRecord,
    children_by_parent: Dict[str, List[GraphRecord]],
    actor: Optional[Actor],
    ancestors: FrozenSet[str],
) -> HierarchyNode:
    chain = ancestors | {graph.id}
    children = []
    for child in children_by_parent.get(graph.id, []):
        if child.id in chain:
            logger.warning(f"Skipping graph {child.id}: parent links form a cycle")
            continue
        children.append(_build_node(child, children_by_parent, actor, chain))

    return HierarchyNode(
        id=graph.id,
        name=graph.name,
        type=graph.type,
        children=children,
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        is_shared=graph.is_shared,
        permission_level=permission_level(graph, actor),
    )


def flatten_hierarchy(nodes: Sequence[HierarchyNode]) -> List[str]:
    """Ids in depth-first order, mostly useful for display and tests."""
    ids: List[str] = []
    for node in nodes:
        ids.append(node.id)
        ids.extend(flatten_hierarchy(node.children))
    return ids


__all__ = ["build_hierarchy", "flatten_hierarchy"]
