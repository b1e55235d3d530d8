import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from rich import print
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from graphdone.config import settings
from graphdone.core.errors import GraphStoreError
from graphdone.core.schemas import GraphRecord, GraphType, HierarchyNode, SyncState
from graphdone.core.store import GraphStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

APP_HELP = """
graphdone: organize work into named, nested graphs.

Graphs nest as PROJECT / WORKSPACE / SUBGRAPH / TEMPLATE containers. Every
command loads the team's graphs from the graph service first. When the service
is unreachable, changes are applied locally only and are lost when the command
exits; such graphs are flagged as local-only.

Identity comes from GRAPHDONE_USER_ID and GRAPHDONE_TEAM_ID.
"""

app = typer.Typer(name="graphdone", help=APP_HELP, no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _run(action: Callable[[GraphStore], Awaitable[T]]) -> T:
    """Load graphs, run one store operation and turn core errors into exit code 1."""
    store = GraphStore.from_settings(settings)

    async def go() -> T:
        await store.load_graphs()
        return await action(store)

    try:
        return asyncio.run(go())
    except GraphStoreError as e:
        print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1)


def _report(graph: GraphRecord, verb: str) -> None:
    print(f"[green]{verb} graph {graph.id} ({graph.name})[/green]")
    if graph.sync_state == SyncState.LOCAL_ONLY:
        print("[yellow]Graph service unavailable: the change exists only locally.[/yellow]")


def _add_branch(tree: Tree, node: HierarchyNode) -> None:
    label = f"{node.name} [dim]({node.type.value}, {node.node_count} nodes, {node.permission_level.value})[/dim]"
    if node.is_shared:
        label += " [cyan]shared[/cyan]"
    branch = tree.add(label)
    for child in node.children:
        _add_branch(branch, child)


@app.command("list")
def list_graphs():
    """List the team's graphs. The current graph is marked with '*'."""

    async def action(store: GraphStore):
        return store

    store = _run(action)

    table = Table(title="Graphs")
    table.add_column("")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Depth", justify="right")
    table.add_column("Sync")

    current_id = store.current_graph.id if store.current_graph else None
    for graph in store.graphs:
        table.add_row(
            "*" if graph.id == current_id else "",
            graph.id,
            graph.name,
            graph.type.value,
            graph.status.value,
            str(graph.depth),
            graph.sync_state.value,
        )
    print(table)
    if store.has_unsynced_changes:
        print(f"[yellow]{len(store.local_only_graphs())} graph(s) are not stored by the graph service.[/yellow]")


@app.command("tree")
def show_tree():
    """Show the graph hierarchy."""

    async def action(store: GraphStore) -> List[HierarchyNode]:
        return store.hierarchy

    roots = _run(action)
    tree = Tree("[bold]Graphs[/bold]")
    for root in roots:
        _add_branch(tree, root)
    print(tree)


@app.command("show")
def show_graph(graph_id: str = typer.Argument(..., help="Graph ID")):
    """Show one graph with its ancestors and your permissions on it."""

    async def action(store: GraphStore):
        graph = store.get_graph(graph_id)
        breadcrumb = " / ".join(ancestor.name for ancestor in store.get_graph_path(graph_id))
        rights = (
            store.can_edit_graph(graph_id),
            store.can_delete_graph(graph_id),
            store.can_share_graph(graph_id),
        )
        return graph, breadcrumb, rights

    graph, breadcrumb, (edit, delete, share) = _run(action)
    body = "\n".join([
        f"[bold]{graph.name}[/bold] [dim]{graph.id}[/dim]",
        graph.description or "[dim]No description[/dim]",
        "",
        f"Type: {graph.type.value}   Status: {graph.status.value}   Sync: {graph.sync_state.value}",
        f"Path: {breadcrumb or '(root)'}",
        f"Nodes: {graph.node_count}   Edges: {graph.edge_count}   Contributors: {graph.contributor_count}",
        f"Owner: {graph.permissions.owner}   Team permission: {graph.permissions.team_permission.value}",
        f"You can edit: {edit}   delete: {delete}   share: {share}",
    ])
    print(Panel(body, title="Graph"))


@app.command("create")
def create_graph(
    name: str = typer.Argument(..., help="Graph name (unique within the team)"),
    graph_type: GraphType = typer.Option(GraphType.PROJECT, "--type", "-t", help="Graph type"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="Parent graph ID"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
):
    """Create a graph and select it."""

    async def action(store: GraphStore) -> GraphRecord:
        return await store.create_graph(
            name=name, type=graph_type, parent_graph_id=parent, description=description
        )

    _report(_run(action), "Created")


@app.command("rename")
def rename_graph(
    graph_id: str = typer.Argument(..., help="Graph ID"),
    name: str = typer.Argument(..., help="New name"),
):
    """Rename a graph."""

    async def action(store: GraphStore) -> GraphRecord:
        return await store.update_graph(graph_id, name=name)

    _report(_run(action), "Renamed")


@app.command("move")
def move_graph(
    graph_id: str = typer.Argument(..., help="Graph ID"),
    parent: Optional[str] = typer.Option(None, "--parent", "-p", help="New parent ID (omit to make it a root)"),
):
    """Move a graph (and its subtree) under another graph."""

    async def action(store: GraphStore) -> GraphRecord:
        return await store.move_graph(graph_id, parent)

    _report(_run(action), "Moved")


@app.command("duplicate")
def duplicate_graph(
    graph_id: str = typer.Argument(..., help="Graph ID to copy"),
    name: str = typer.Argument(..., help="Name of the copy"),
):
    """Copy a graph next to the original."""

    async def action(store: GraphStore) -> GraphRecord:
        return await store.duplicate_graph(graph_id, name)

    _report(_run(action), "Duplicated")


@app.command("delete")
def delete_graph(
    graph_id: str = typer.Argument(..., help="Graph ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a graph."""
    if not yes:
        typer.confirm(f"Delete graph {graph_id}?", abort=True)

    async def action(store: GraphStore) -> Optional[GraphRecord]:
        await store.delete_graph(graph_id)
        return store.current_graph

    current = _run(action)
    print(f"[green]Deleted graph {graph_id}[/green]")
    print(f"Current graph: {current.name if current else '[dim]none[/dim]'}")


@app.command("select")
def select_graph(graph_id: str = typer.Argument(..., help="Graph ID")):
    """Select a graph; the choice is remembered for later commands."""

    async def action(store: GraphStore) -> GraphRecord:
        return store.select_graph(graph_id)

    graph = _run(action)
    print(f"[green]Current graph: {graph.name}[/green]")


@app.command("share")
def share_graph(
    graph_id: str = typer.Argument(..., help="Graph ID"),
    public: bool = typer.Option(False, "--public", help="Make the graph public"),
    allow_copying: bool = typer.Option(False, "--allow-copying", help="Allow copies"),
    allow_forking: bool = typer.Option(False, "--allow-forking", help="Allow forks"),
):
    """Share a graph."""

    async def action(store: GraphStore) -> GraphRecord:
        if not store.can_share_graph(graph_id):
            print("[yellow]You may not have permission to share this graph.[/yellow]")
        return await store.share_graph(
            graph_id,
            is_public=public,
            allow_copying=allow_copying,
            allow_forking=allow_forking,
        )

    _report(_run(action), "Shared")


@app.command("can")
def check_permissions(graph_id: str = typer.Argument(..., help="Graph ID")):
    """Show whether you can edit, delete and share a graph."""

    async def action(store: GraphStore):
        store.get_graph(graph_id)
        return (
            store.can_edit_graph(graph_id),
            store.can_delete_graph(graph_id),
            store.can_share_graph(graph_id),
        )

    edit, delete, share = _run(action)
    table = Table(title=f"Permissions on {graph_id}")
    table.add_column("Edit")
    table.add_column("Delete")
    table.add_column("Share")
    table.add_row(*("[green]yes[/green]" if allowed else "[red]no[/red]" for allowed in (edit, delete, share)))
    print(table)


if __name__ == "__main__":
    app()
