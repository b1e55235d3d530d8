from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from graphdone.core.errors import RemoteServiceError
from graphdone.core.interfaces import IGraphService
from graphdone.core.schemas import (
    Actor,
    GraphPermissions,
    GraphRecord,
    GraphType,
    TeamPermission,
)
from graphdone.core.session import MemorySelectionStore, StaticSessionProvider
from graphdone.core.store import GraphStore


class FakeGraphService(IGraphService):
    """In-memory graph service. Set ``fail = True`` to simulate an outage."""

    def __init__(self, graphs: Optional[List[GraphRecord]] = None):
        self.graphs: Dict[str, GraphRecord] = {graph.id: graph for graph in graphs or []}
        self.fail = False
        self.calls: List[str] = []
        self.payloads: List[dict] = []
        self._counter = 0

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise RemoteServiceError("service unavailable", operation=operation)

    async def list_graphs(self, team_id=None):
        self._check("list")
        return [
            graph for graph in self.graphs.values()
            if team_id is None or graph.team_id == team_id
        ]

    async def create_graph(self, payload):
        self._check("create")
        self.payloads.append(payload)
        self._counter += 1
        data = {k: v for k, v in payload.items() if k not in ("templateId", "copyFromGraphId")}
        graph = GraphRecord.model_validate({**data, "id": f"remote-{self._counter}"})
        self.graphs[graph.id] = graph
        return graph

    async def update_graph(self, graph_id, changes):
        self._check("update")
        self.payloads.append(changes)
        if graph_id not in self.graphs:
            raise RemoteServiceError(f"graph {graph_id} not found", operation="update")
        current = self.graphs[graph_id].model_dump(by_alias=True, mode="json")
        updated = GraphRecord.model_validate({**current, **changes})
        self.graphs[graph_id] = updated
        return updated

    async def delete_graph(self, graph_id):
        self._check("delete")
        return 1 if self.graphs.pop(graph_id, None) else 0


def make_graph(
    graph_id: str,
    name: Optional[str] = None,
    parent: Optional[GraphRecord] = None,
    team_id: str = "team-1",
    owner: str = "owner-1",
    **overrides,
) -> GraphRecord:
    """Build a record whose depth/path are consistent with ``parent``."""
    data = dict(
        id=graph_id,
        name=name or graph_id.title(),
        type=GraphType.SUBGRAPH if parent else GraphType.PROJECT,
        parent_graph_id=parent.id if parent else None,
        depth=parent.depth + 1 if parent else 0,
        path=[*parent.path, parent.id] if parent else [],
        team_id=team_id,
        created_by=owner,
        permissions=GraphPermissions(
            owner=owner,
            admins=[owner],
            team_permission=TeamPermission.VIEW,
        ),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return GraphRecord(**data)


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="user-1", team_id="team-1")


@pytest.fixture
def service() -> FakeGraphService:
    return FakeGraphService()


@pytest.fixture
def selection_store() -> MemorySelectionStore:
    return MemorySelectionStore()


@pytest.fixture
def store(service, actor, selection_store) -> GraphStore:
    return GraphStore(
        service=service,
        session=StaticSessionProvider(actor),
        selection_store=selection_store,
        default_team_id="team-1",
    )


@pytest.fixture
def tree_graphs() -> List[GraphRecord]:
    """root -> (child-a -> grandchild), child-b ; plus a second root."""
    root = make_graph("root", "Root")
    child_a = make_graph("child-a", "Child A", parent=root)
    grandchild = make_graph("grandchild", "Grandchild", parent=child_a)
    child_b = make_graph("child-b", "Child B", parent=root)
    other = make_graph("other", "Other Root")
    return [root, child_a, grandchild, child_b, other]
