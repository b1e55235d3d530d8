"""Pydantic models for graphs, their nested settings and the hierarchy view.

Field names are snake_case in Python and camelCase on the wire; every model
accepts either spelling on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GraphType(str, Enum):
    """Kind of graph container."""

    PROJECT = "PROJECT"
    WORKSPACE = "WORKSPACE"
    SUBGRAPH = "SUBGRAPH"
    TEMPLATE = "TEMPLATE"


class GraphStatus(str, Enum):
    """Lifecycle status of a graph."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class TeamPermission(str, Enum):
    """Blanket capability granted to every member of the owning team."""

    NONE = "NONE"
    VIEW = "VIEW"
    EDIT = "EDIT"


class PermissionLevel(str, Enum):
    """Effective level of an actor over a graph, as shown in the hierarchy."""

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    EDIT = "EDIT"
    VIEW = "VIEW"


class SyncState(str, Enum):
    """Whether the local copy of a graph is known to match the remote service."""

    SYNCED = "synced"
    LOCAL_ONLY = "local_only"


class WireModel(BaseModel):
    """Base for models exchanged with the graph service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GraphPermissions(WireModel):
    """Per-user role lists plus the team-wide permission."""

    owner: str = Field(..., description="User id of the single owner")
    admins: List[str] = Field(default_factory=list)
    editors: List[str] = Field(default_factory=list)
    viewers: List[str] = Field(default_factory=list)
    team_permission: TeamPermission = Field(default=TeamPermission.VIEW)

    @classmethod
    def for_owner(cls, user_id: str) -> GraphPermissions:
        """Default permission block for a newly created graph."""
        return cls(
            owner=user_id,
            admins=[user_id],
            editors=[],
            viewers=[],
            team_permission=TeamPermission.VIEW,
        )


class ShareSettings(WireModel):
    is_public: bool = False
    allow_team_access: bool = True
    allow_copying: bool = False
    allow_forking: bool = False
    share_link: Optional[str] = None
    expires_at: Optional[datetime] = None


class GraphSettings(WireModel):
    """Display preferences. Unknown keys are preserved."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    theme: str = "light"
    layout: str = "force"
    show_priorities: bool = True
    show_dependencies: bool = True
    auto_layout: bool = True
    zoom_level: float = 1.0
    center_node: Optional[str] = None


class GraphRecord(WireModel):
    """A named, typed graph container and its place in the hierarchy."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "graph-2",
                "name": "Authentication System",
                "type": "SUBGRAPH",
                "status": "ACTIVE",
                "parentGraphId": "graph-1",
                "depth": 1,
                "path": ["graph-1"],
                "teamId": "team-1",
                "createdBy": "user-2",
                "permissions": {"owner": "user-2", "admins": ["user-2"], "teamPermission": "EDIT"},
            }
        },
    )

    id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: GraphType
    status: GraphStatus = GraphStatus.DRAFT
    parent_graph_id: Optional[str] = Field(None, description="Null for root graphs")
    depth: int = Field(0, ge=0)
    path: List[str] = Field(
        default_factory=list, description="Ancestor ids from root to direct parent"
    )
    team_id: Optional[str] = None
    created_by: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    default_role: Optional[str] = None

    permissions: GraphPermissions
    is_shared: bool = False
    share_settings: ShareSettings = Field(default_factory=ShareSettings)

    # Denormalized counters, advisory only
    node_count: int = 0
    edge_count: int = 0
    contributor_count: int = 0
    last_activity: Optional[datetime] = None

    settings: GraphSettings = Field(default_factory=GraphSettings)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Client-side only, never sent to the graph service
    sync_state: SyncState = Field(default=SyncState.SYNCED, exclude=True)

    @field_validator("path", "tags", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_root(self) -> bool:
        return self.parent_graph_id is None


class CreateGraphInput(WireModel):
    """Caller-supplied fields for a new graph."""

    name: str
    description: Optional[str] = None
    type: GraphType = GraphType.PROJECT
    parent_graph_id: Optional[str] = None
    team_id: Optional[str] = Field(None, description="Defaults to the actor's team")
    created_by: Optional[str] = Field(None, description="Defaults to the actor")
    status: GraphStatus = GraphStatus.DRAFT
    template_id: Optional[str] = None
    copy_from_graph_id: Optional[str] = Field(
        None, description="Ask the service to copy contents of this graph"
    )
    tags: List[str] = Field(default_factory=list)
    default_role: Optional[str] = None
    is_shared: bool = False


class GraphUpdate(WireModel):
    """Partial update of a graph's editable fields. Only fields explicitly set are applied.

    Relocation is not an update; use ``move_graph`` so depth and path stay
    consistent.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[GraphStatus] = None
    settings: Optional[GraphSettings] = None
    permissions: Optional[GraphPermissions] = None
    share_settings: Optional[ShareSettings] = None
    is_shared: Optional[bool] = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> GraphUpdate:
        # description is the only field a graph may clear
        nulled = sorted(
            name for name in self.model_fields_set
            if name != "description" and getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be cleared: {', '.join(nulled)}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Explicitly set fields keyed by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class GraphPlacement(WireModel):
    """Position of a graph in the hierarchy, written only by moves."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    parent_graph_id: Optional[str] = None
    depth: int = Field(0, ge=0)
    path: List[str] = Field(default_factory=list)

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class HierarchyNode(BaseModel):
    """Derived tree view of a graph. Rebuilt on every read, never mutated."""

    id: str
    name: str
    type: GraphType
    children: List[HierarchyNode] = Field(default_factory=list)
    node_count: int = 0
    edge_count: int = 0
    is_shared: bool = False
    permission_level: PermissionLevel = PermissionLevel.VIEW


class Actor(BaseModel):
    """The user performing an operation, evaluated against a team context."""

    user_id: str
    team_id: Optional[str] = None


__all__ = [
    "Actor",
    "CreateGraphInput",
    "GraphPermissions",
    "GraphPlacement",
    "GraphRecord",
    "GraphSettings",
    "GraphStatus",
    "GraphType",
    "GraphUpdate",
    "HierarchyNode",
    "PermissionLevel",
    "ShareSettings",
    "SyncState",
    "TeamPermission",
    "utcnow",
]
