"""Graph hierarchy and permission core."""

from graphdone.core.errors import (
    GraphNotFoundError,
    GraphStoreError,
    GraphValidationError,
    RemoteServiceError,
)
from graphdone.core.hierarchy import build_hierarchy
from graphdone.core.schemas import (
    Actor,
    CreateGraphInput,
    GraphRecord,
    GraphUpdate,
    HierarchyNode,
    SyncState,
)
from graphdone.core.store import GraphStore
from graphdone.core.sync import SyncEngine

__all__ = [
    "Actor",
    "CreateGraphInput",
    "GraphNotFoundError",
    "GraphRecord",
    "GraphStore",
    "GraphStoreError",
    "GraphUpdate",
    "GraphValidationError",
    "HierarchyNode",
    "RemoteServiceError",
    "SyncEngine",
    "SyncState",
    "build_hierarchy",
]
