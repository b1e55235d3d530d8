"""SyncEngine - remote-first graph mutations with local fallback.

Every mutation is attempted against the graph service first. When the service
fails, the change is applied to the local working copy instead and the record
is marked ``local_only``, so the caller is never blocked by an outage. The
price is that the working copy can diverge from the service until the next
successful load.

Validation and not-found errors are raised before any remote call and leave
the collection untouched.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from .errors import GraphNotFoundError, GraphValidationError
from .interfaces import IGraphService, ISessionProvider
from .paths import derive_depth_and_path, descendants_of, index_by_id, is_descendant
from .schemas import (
    Actor,
    CreateGraphInput,
    GraphPermissions,
    GraphPlacement,
    GraphRecord,
    GraphUpdate,
    SyncState,
    utcnow,
)

logger = logging.getLogger(__name__)


def local_graph_id() -> str:
    return f"graph-{uuid.uuid4().hex}"


class SyncEngine:
    """Owns the in-memory graph collection and the current selection.

    The collection is only ever replaced as a whole, never mutated in place.
    In-flight operations are not sequenced: a late remote response overwrites
    whatever local change landed in between (last write wins).
    """

    def __init__(
        self,
        service: IGraphService,
        session: ISessionProvider,
        default_team_id: str = "default-team",
    ):
        """
        Initialize the engine.

        Args:
            service: Remote graph service
            session: Supplies the acting user and team
            default_team_id: Team used when neither input nor session names one
        """
        self.service = service
        self.session = session
        self.default_team_id = default_team_id
        self.graphs: List[GraphRecord] = []
        self.current_graph: Optional[GraphRecord] = None

    # ========================================
    # Collection
    # ========================================

    def replace_collection(self, graphs: List[GraphRecord]) -> None:
        self.graphs = list(graphs)
        if self.current_graph is not None:
            self.current_graph = self.find_graph(self.current_graph.id)

    def find_graph(self, graph_id: str) -> Optional[GraphRecord]:
        return index_by_id(self.graphs).get(graph_id)

    def get_graph(self, graph_id: str) -> GraphRecord:
        graph = self.find_graph(graph_id)
        if graph is None:
            raise GraphNotFoundError(graph_id)
        return graph

    def _insert(self, graph: GraphRecord) -> None:
        self.graphs = [*self.graphs, graph]

    def _replace(self, graph: GraphRecord) -> None:
        self.graphs = [graph if existing.id == graph.id else existing for existing in self.graphs]
        if self.current_graph is not None and self.current_graph.id == graph.id:
            self.current_graph = graph

    def _remove(self, graph_id: str) -> None:
        self.graphs = [graph for graph in self.graphs if graph.id != graph_id]
        if self.current_graph is not None and self.current_graph.id == graph_id:
            self.current_graph = self.graphs[0] if self.graphs else None

    # ========================================
    # Validation
    # ========================================

    def _require_actor(self) -> Actor:
        actor = self.session.get_actor()
        if actor is None:
            raise GraphValidationError("No signed-in user; graphs cannot be created")
        return actor

    def validate_name(
        self,
        name: Optional[str],
        team_id: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> str:
        """Return the trimmed name, or raise if it is empty or taken within the team.

        Only the local collection is checked, so two concurrent creates can
        both pass. The service is expected to enforce uniqueness itself.
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise GraphValidationError("Graph name is required", {"field": "name"})

        key = cleaned.casefold()
        for graph in self.graphs:
            if graph.id == exclude_id or graph.team_id != team_id:
                continue
            if graph.name.strip().casefold() == key:
                raise GraphValidationError(
                    f'A graph with the name "{cleaned}" already exists',
                    {"field": "name", "conflict_id": graph.id},
                )
        return cleaned

    # ========================================
    # Mutations
    # ========================================

    async def create_graph(self, data: CreateGraphInput) -> GraphRecord:
        """Create a graph and make it the current selection.

        Falls back to a local-only record when the service call fails; no
        error reaches the caller in that case.

        Raises:
            GraphValidationError: Empty or duplicate name, or no signed-in user.
            GraphNotFoundError: The parent graph is not in the collection.
        """
        actor = self._require_actor()
        team_id = data.team_id or actor.team_id or self.default_team_id
        name = self.validate_name(data.name, team_id)
        depth, path = derive_depth_and_path(data.parent_graph_id, self.graphs)

        now = utcnow()
        draft = GraphRecord(
            id=local_graph_id(),
            name=name,
            description=data.description,
            type=data.type,
            status=data.status,
            parent_graph_id=data.parent_graph_id,
            depth=depth,
            path=path,
            team_id=team_id,
            created_by=data.created_by or actor.user_id,
            tags=data.tags,
            default_role=data.default_role,
            permissions=GraphPermissions.for_owner(actor.user_id),
            is_shared=data.is_shared,
            contributor_count=1,
            last_activity=now,
            created_at=now,
            updated_at=now,
        )

        payload = draft.model_dump(
            by_alias=True, mode="json", exclude={"id", "created_at", "updated_at"}
        )
        if data.template_id:
            payload["templateId"] = data.template_id
        if data.copy_from_graph_id:
            payload["copyFromGraphId"] = data.copy_from_graph_id

        try:
            graph = await self.service.create_graph(payload)
            logger.info(f"Created graph {graph.id} ({graph.name})")
        except Exception as e:
            logger.warning(f"Remote create of '{name}' failed, keeping local-only graph {draft.id}: {e}")
            graph = draft.model_copy(update={"sync_state": SyncState.LOCAL_ONLY})

        self._insert(graph)
        self.current_graph = graph
        return graph

    async def update_graph(
        self,
        graph_id: str,
        update: Union[GraphUpdate, Dict],
    ) -> GraphRecord:
        """Apply a partial update, replacing the stored record.

        On service failure the update is merged into the local record, which
        gets a fresh ``updated_at`` and is marked local-only. Parent, depth
        and path are not updatable here; see ``move_graph``.

        Raises:
            GraphNotFoundError: Unknown graph id.
            GraphValidationError: Unknown or cleared field, or an empty or
                duplicate new name.
        """
        existing = self.get_graph(graph_id)
        if not isinstance(update, GraphUpdate):
            try:
                update = GraphUpdate.model_validate(update)
            except ValidationError as e:
                raise GraphValidationError(
                    f"Invalid update for graph {graph_id}: {e}",
                    {"fields": [".".join(str(part) for part in error["loc"]) for error in e.errors()]},
                ) from e

        if "name" in update.model_fields_set:
            name = self.validate_name(update.name, existing.team_id, exclude_id=graph_id)
            update = update.model_copy(update={"name": name})

        return await self._apply(existing, update)

    async def _apply(
        self,
        existing: GraphRecord,
        update: Union[GraphUpdate, GraphPlacement],
    ) -> GraphRecord:
        changes = update.changes()
        payload = update.model_dump(by_alias=True, mode="json", include=set(changes))

        try:
            graph = await self.service.update_graph(existing.id, payload)
            logger.info(f"Updated graph {existing.id}")
        except Exception as e:
            logger.warning(f"Remote update of graph {existing.id} failed, applying locally: {e}")
            graph = existing.model_copy(
                update={**changes, "updated_at": utcnow(), "sync_state": SyncState.LOCAL_ONLY}
            )

        self._replace(graph)
        return graph

    async def delete_graph(self, graph_id: str) -> None:
        """Delete remotely if possible; the local record is removed either way.

        When the deleted graph was selected, the first remaining graph (or
        None) becomes the selection. Child graphs are left in place.
        """
        self.get_graph(graph_id)

        try:
            deleted = await self.service.delete_graph(graph_id)
            logger.info(f"Deleted graph {graph_id} ({deleted} nodes removed)")
        except Exception as e:
            logger.warning(f"Remote delete of graph {graph_id} failed, removing locally: {e}")

        self._remove(graph_id)

    async def duplicate_graph(self, graph_id: str, name: str) -> GraphRecord:
        """Create a sibling copy of a graph.

        The service is asked to copy contents. If it is unreachable, the result
        is an empty local-only graph sharing only the metadata.
        """
        original = self.get_graph(graph_id)
        graph = await self.create_graph(
            CreateGraphInput(
                name=name,
                description=f"Copy of {original.name}",
                type=original.type,
                parent_graph_id=original.parent_graph_id,
                team_id=original.team_id,
                copy_from_graph_id=graph_id,
            )
        )
        if graph.sync_state == SyncState.LOCAL_ONLY:
            logger.warning(f"Contents of graph {graph_id} were not copied into {graph.id}")
        return graph

    async def move_graph(self, graph_id: str, new_parent_id: Optional[str] = None) -> GraphRecord:
        """Re-parent a graph and recompute depth/path for it and its whole subtree.

        Raises:
            GraphNotFoundError: Unknown graph or parent id.
            GraphValidationError: The new parent is the graph itself or one of
                its descendants.
        """
        graph = self.get_graph(graph_id)
        if new_parent_id is not None and (
            new_parent_id == graph_id or is_descendant(new_parent_id, graph_id, self.graphs)
        ):
            raise GraphValidationError(
                f"Cannot move graph {graph_id} under its own subtree",
                {"graph_id": graph_id, "new_parent_id": new_parent_id},
            )

        depth, path = derive_depth_and_path(new_parent_id, self.graphs)
        subtree = descendants_of(graph_id, self.graphs)

        moved = await self._apply(
            graph,
            GraphPlacement(parent_graph_id=new_parent_id, depth=depth, path=path),
        )

        # Parents precede children, so each parent is already recomputed
        for child in subtree:
            current = self.find_graph(child.id)
            if current is None or current.parent_graph_id is None:
                continue
            parent = self.find_graph(current.parent_graph_id)
            if parent is None:
                logger.warning(f"Parent of graph {child.id} vanished during move, skipping")
                continue
            child_path = [*parent.path, parent.id]
            if current.depth == parent.depth + 1 and current.path == child_path:
                continue
            await self._apply(current, GraphPlacement(depth=parent.depth + 1, path=child_path))

        return self.find_graph(graph_id) or moved


__all__ = ["SyncEngine", "local_graph_id"]
