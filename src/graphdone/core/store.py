"""GraphStore - the state container consumed by the UI/CLI layer.

Holds the current graph, the full collection, loading flags and the derived
hierarchy, and exposes the graph operations plus permission and lookup
helpers. One instance per session; nothing is global, so tests build their
own.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from graphdone.db import make_engine

from .client import GraphQLGraphService
from .hierarchy import build_hierarchy
from .interfaces import IGraphService, ISelectionStore, ISessionProvider
from .paths import children_of, find_invariant_violations
from .permissions import can_delete, can_edit, can_share
from .schemas import (
    Actor,
    CreateGraphInput,
    GraphPermissions,
    GraphRecord,
    GraphUpdate,
    HierarchyNode,
    ShareSettings,
    SyncState,
)
from .seed import demo_graphs
from .session import CURRENT_GRAPH_KEY, MemorySelectionStore, SqlSelectionStore, StaticSessionProvider
from .sync import SyncEngine

logger = logging.getLogger(__name__)


class GraphStore:
    def __init__(
        self,
        service: IGraphService,
        session: ISessionProvider,
        selection_store: Optional[ISelectionStore] = None,
        default_team_id: str = "default-team",
        demo_fallback: bool = True,
    ):
        self.session = session
        self.selection_store = selection_store or MemorySelectionStore()
        self.default_team_id = default_team_id
        self.demo_fallback = demo_fallback
        self.engine = SyncEngine(service, session, default_team_id=default_team_id)
        self.is_loading = False
        self.is_creating = False
        self._last_known: Optional[List[GraphRecord]] = None

    @classmethod
    def from_settings(cls, settings) -> GraphStore:
        """Wire the GraphQL service, settings actor and SQLite selection store."""
        return cls(
            service=GraphQLGraphService.from_settings(settings),
            session=StaticSessionProvider.from_settings(settings),
            selection_store=SqlSelectionStore(make_engine(settings.database_url)),
            default_team_id=settings.team_id,
            demo_fallback=settings.demo_fallback,
        )

    # ========================================
    # State
    # ========================================

    @property
    def actor(self) -> Optional[Actor]:
        return self.session.get_actor()

    @property
    def current_graph(self) -> Optional[GraphRecord]:
        return self.engine.current_graph

    @property
    def graphs(self) -> List[GraphRecord]:
        return self.engine.graphs

    @property
    def hierarchy(self) -> List[HierarchyNode]:
        return build_hierarchy(self.engine.graphs, self.actor)

    @property
    def has_unsynced_changes(self) -> bool:
        return any(graph.sync_state == SyncState.LOCAL_ONLY for graph in self.engine.graphs)

    def local_only_graphs(self) -> List[GraphRecord]:
        return [graph for graph in self.engine.graphs if graph.sync_state == SyncState.LOCAL_ONLY]

    def check_invariants(self) -> List[str]:
        return find_invariant_violations(self.engine.graphs)

    def _team_id(self) -> str:
        actor = self.actor
        return actor.team_id if actor and actor.team_id else self.default_team_id

    def _persist_selection(self) -> None:
        current = self.engine.current_graph
        if current is None:
            self.selection_store.delete(CURRENT_GRAPH_KEY)
        else:
            self.selection_store.set(CURRENT_GRAPH_KEY, current.id)

    # ========================================
    # Loading and selection
    # ========================================

    async def load_graphs(self) -> List[GraphRecord]:
        """Load the team's graphs, falling back to the last known or demo data.

        The selection is restored from the persisted id, else the previous
        selection, else the first graph.
        """
        team_id = self._team_id()
        self.is_loading = True
        try:
            graphs = await self.engine.service.list_graphs(team_id)
            self._last_known = list(graphs)
            logger.info(f"Loaded {len(graphs)} graphs for team {team_id}")
        except Exception as e:
            graphs = self._fallback_graphs(team_id)
            logger.warning(f"Failed to load graphs for team {team_id}, using {len(graphs)} fallback graphs: {e}")
        finally:
            self.is_loading = False

        previous = self.engine.current_graph
        self.engine.replace_collection(graphs)
        self._restore_selection(previous.id if previous else None)
        return self.engine.graphs

    async def refresh_graphs(self) -> List[GraphRecord]:
        return await self.load_graphs()

    def _fallback_graphs(self, team_id: str) -> List[GraphRecord]:
        if self._last_known is not None:
            return list(self._last_known)
        if self.demo_fallback:
            return demo_graphs(team_id)
        return []

    def _restore_selection(self, previous_id: Optional[str]) -> None:
        for candidate in (self.selection_store.get(CURRENT_GRAPH_KEY), previous_id):
            if candidate and self.engine.find_graph(candidate) is not None:
                self.engine.current_graph = self.engine.find_graph(candidate)
                return
        graphs = self.engine.graphs
        self.engine.current_graph = graphs[0] if graphs else None

    def select_graph(self, graph_id: str) -> GraphRecord:
        """Make a graph current and remember the choice for the next session."""
        graph = self.engine.get_graph(graph_id)
        self.engine.current_graph = graph
        self.selection_store.set(CURRENT_GRAPH_KEY, graph_id)
        logger.debug(f"Selected graph {graph_id}")
        return graph

    # ========================================
    # Mutations
    # ========================================

    async def create_graph(self, data: Optional[CreateGraphInput] = None, **fields) -> GraphRecord:
        create_input = data or CreateGraphInput(**fields)
        self.is_creating = True
        try:
            graph = await self.engine.create_graph(create_input)
        finally:
            self.is_creating = False
        self._persist_selection()
        return graph

    async def update_graph(
        self,
        graph_id: str,
        update: Union[GraphUpdate, Dict, None] = None,
        **fields,
    ) -> GraphRecord:
        return await self.engine.update_graph(graph_id, update if update is not None else fields)

    async def delete_graph(self, graph_id: str) -> None:
        was_current = self.current_graph is not None and self.current_graph.id == graph_id
        await self.engine.delete_graph(graph_id)
        if was_current:
            self._persist_selection()

    async def duplicate_graph(self, graph_id: str, name: str) -> GraphRecord:
        self.is_creating = True
        try:
            graph = await self.engine.duplicate_graph(graph_id, name)
        finally:
            self.is_creating = False
        self._persist_selection()
        return graph

    async def move_graph(self, graph_id: str, new_parent_id: Optional[str] = None) -> GraphRecord:
        return await self.engine.move_graph(graph_id, new_parent_id)

    async def share_graph(self, graph_id: str, **share_settings) -> GraphRecord:
        """Mark a graph shared and merge the given share settings."""
        graph = self.engine.get_graph(graph_id)
        merged = ShareSettings.model_validate(
            {**graph.share_settings.model_dump(), **share_settings}
        )
        return await self.engine.update_graph(
            graph_id, GraphUpdate(is_shared=True, share_settings=merged)
        )

    async def update_permissions(self, graph_id: str, **permissions) -> GraphRecord:
        """Merge partial permissions into the graph's permission block."""
        graph = self.engine.get_graph(graph_id)
        merged = GraphPermissions.model_validate(
            {**graph.permissions.model_dump(), **permissions}
        )
        return await self.engine.update_graph(graph_id, GraphUpdate(permissions=merged))

    # ========================================
    # Lookups and permission checks
    # ========================================

    def get_graph(self, graph_id: str) -> GraphRecord:
        return self.engine.get_graph(graph_id)

    def get_graph_path(self, graph_id: str) -> List[GraphRecord]:
        """Ancestor graphs from root to direct parent. Unknown ids are skipped."""
        graph = self.engine.find_graph(graph_id)
        if graph is None:
            return []
        ancestors = (self.engine.find_graph(ancestor_id) for ancestor_id in graph.path)
        return [ancestor for ancestor in ancestors if ancestor is not None]

    def get_graph_path_ids(self, graph_id: str) -> List[str]:
        graph = self.engine.find_graph(graph_id)
        return list(graph.path) if graph else []

    def get_graph_depth(self, graph_id: str) -> int:
        graph = self.engine.find_graph(graph_id)
        return graph.depth if graph else 0

    def get_graph_children(self, graph_id: str) -> List[GraphRecord]:
        return children_of(graph_id, self.engine.graphs)

    def can_edit_graph(self, graph_id: str) -> bool:
        graph = self.engine.find_graph(graph_id)
        return graph is not None and can_edit(graph, self.actor)

    def can_delete_graph(self, graph_id: str) -> bool:
        graph = self.engine.find_graph(graph_id)
        return graph is not None and can_delete(graph, self.actor)

    def can_share_graph(self, graph_id: str) -> bool:
        graph = self.engine.find_graph(graph_id)
        return graph is not None and can_share(graph, self.actor)


__all__ = ["GraphStore"]
