"""Built-in dataset shown when the graph service cannot be reached on first load."""

from __future__ import annotations

from typing import List

from .schemas import GraphRecord, SyncState

_DEMO_GRAPHS = [
    {
        "id": "graph-1",
        "name": "Product Roadmap 2024",
        "description": "Main product development roadmap and feature planning",
        "type": "PROJECT",
        "status": "ACTIVE",
        "createdBy": "user-1",
        "createdAt": "2024-01-15T10:00:00Z",
        "updatedAt": "2024-03-20T15:30:00Z",
        "depth": 0,
        "path": [],
        "permissions": {
            "owner": "user-1",
            "admins": ["user-1"],
            "editors": ["user-2", "user-3"],
            "viewers": ["user-4"],
            "teamPermission": "VIEW",
        },
        "isShared": True,
        "shareSettings": {"isPublic": False, "allowTeamAccess": True, "allowCopying": True},
        "nodeCount": 45,
        "edgeCount": 67,
        "contributorCount": 8,
        "lastActivity": "2024-03-20T15:30:00Z",
        "settings": {"theme": "light", "layout": "force", "zoomLevel": 1.0},
    },
    {
        "id": "graph-2",
        "name": "Authentication System",
        "description": "User authentication and authorization subsystem",
        "type": "SUBGRAPH",
        "status": "ACTIVE",
        "parentGraphId": "graph-1",
        "createdBy": "user-2",
        "createdAt": "2024-02-01T09:00:00Z",
        "updatedAt": "2024-03-18T11:20:00Z",
        "depth": 1,
        "path": ["graph-1"],
        "permissions": {
            "owner": "user-2",
            "admins": ["user-2"],
            "editors": ["user-1", "user-3"],
            "viewers": [],
            "teamPermission": "EDIT",
        },
        "nodeCount": 12,
        "edgeCount": 18,
        "contributorCount": 3,
        "lastActivity": "2024-03-18T11:20:00Z",
        "settings": {"theme": "light", "layout": "hierarchical", "autoLayout": False, "zoomLevel": 1.2},
    },
    {
        "id": "graph-3",
        "name": "UI Components Library",
        "description": "Reusable UI components and design system",
        "type": "SUBGRAPH",
        "status": "ACTIVE",
        "parentGraphId": "graph-1",
        "createdBy": "user-3",
        "createdAt": "2024-02-10T14:00:00Z",
        "updatedAt": "2024-03-19T16:45:00Z",
        "depth": 1,
        "path": ["graph-1"],
        "permissions": {
            "owner": "user-3",
            "admins": ["user-3"],
            "editors": ["user-1", "user-2"],
            "viewers": ["user-4"],
            "teamPermission": "VIEW",
        },
        "isShared": True,
        "shareSettings": {
            "isPublic": True,
            "allowTeamAccess": True,
            "allowCopying": True,
            "allowForking": True,
            "shareLink": "https://graphdone.com/share/ui-components-abc123",
        },
        "nodeCount": 28,
        "edgeCount": 34,
        "contributorCount": 5,
        "lastActivity": "2024-03-19T16:45:00Z",
        "settings": {"theme": "light", "layout": "grid", "showPriorities": False, "zoomLevel": 0.8},
    },
    {
        "id": "graph-4",
        "name": "Research Ideas",
        "description": "Experimental features and research initiatives",
        "type": "WORKSPACE",
        "status": "ACTIVE",
        "createdBy": "user-1",
        "createdAt": "2024-01-20T11:00:00Z",
        "updatedAt": "2024-03-15T13:10:00Z",
        "depth": 0,
        "path": [],
        "permissions": {
            "owner": "user-1",
            "admins": ["user-1", "user-5"],
            "editors": ["user-2"],
            "viewers": [],
            "teamPermission": "NONE",
        },
        "shareSettings": {"isPublic": False, "allowTeamAccess": False},
        "nodeCount": 23,
        "edgeCount": 15,
        "contributorCount": 3,
        "lastActivity": "2024-03-15T13:10:00Z",
        "settings": {"theme": "dark", "layout": "force", "showDependencies": False, "zoomLevel": 1.1},
    },
    {
        "id": "graph-5",
        "name": "Login Components",
        "description": "Login, signup, and password reset components",
        "type": "SUBGRAPH",
        "status": "ACTIVE",
        "parentGraphId": "graph-2",
        "createdBy": "user-2",
        "createdAt": "2024-02-15T10:30:00Z",
        "updatedAt": "2024-03-17T09:15:00Z",
        "depth": 2,
        "path": ["graph-1", "graph-2"],
        "permissions": {
            "owner": "user-2",
            "admins": ["user-2"],
            "editors": ["user-1"],
            "viewers": ["user-3"],
            "teamPermission": "VIEW",
        },
        "nodeCount": 8,
        "edgeCount": 12,
        "contributorCount": 2,
        "lastActivity": "2024-03-17T09:15:00Z",
        "settings": {"theme": "light", "layout": "hierarchical", "zoomLevel": 1.0},
    },
]


def demo_graphs(team_id: str) -> List[GraphRecord]:
    """Fresh copies of the demo dataset, owned by ``team_id`` and marked local-only."""
    graphs = []
    for raw in _DEMO_GRAPHS:
        graph = GraphRecord.model_validate({**raw, "teamId": team_id})
        graph.sync_state = SyncState.LOCAL_ONLY
        graphs.append(graph)
    return graphs


__all__ = ["demo_graphs"]
