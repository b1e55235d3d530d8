"""Effective rights of an actor over a graph.

These checks only gate client affordances. The graph service enforces the
same rules on its side.
"""

from __future__ import annotations

from typing import Optional

from .schemas import Actor, GraphRecord, PermissionLevel, TeamPermission


def is_owner(graph: GraphRecord, actor: Optional[Actor]) -> bool:
    return actor is not None and graph.permissions.owner == actor.user_id


def is_admin(graph: GraphRecord, actor: Optional[Actor]) -> bool:
    """Owner or listed admin. The owner is always admin-equivalent."""
    if actor is None:
        return False
    return is_owner(graph, actor) or actor.user_id in graph.permissions.admins


def can_edit(graph: GraphRecord, actor: Optional[Actor]) -> bool:
    if actor is None:
        return False
    perms = graph.permissions
    return (
        is_admin(graph, actor)
        or actor.user_id in perms.editors
        or (
            perms.team_permission == TeamPermission.EDIT
            and actor.team_id is not None
            and graph.team_id == actor.team_id
        )
    )


def can_delete(graph: GraphRecord, actor: Optional[Actor]) -> bool:
    # Editors and team EDIT never grant delete
    return is_admin(graph, actor)


def can_share(graph: GraphRecord, actor: Optional[Actor]) -> bool:
    return can_edit(graph, actor)


def permission_level(graph: GraphRecord, actor: Optional[Actor]) -> PermissionLevel:
    """Highest level the actor holds, VIEW when nothing better applies."""
    if is_owner(graph, actor):
        return PermissionLevel.OWNER
    if is_admin(graph, actor):
        return PermissionLevel.ADMIN
    if can_edit(graph, actor):
        return PermissionLevel.EDIT
    return PermissionLevel.VIEW


__all__ = [
    "can_delete",
    "can_edit",
    "can_share",
    "is_admin",
    "is_owner",
    "permission_level",
]
