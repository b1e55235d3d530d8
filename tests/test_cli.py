from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from graphdone.core.session import StaticSessionProvider
from graphdone.core.schemas import Actor
from graphdone.core.store import GraphStore
from graphdone.main import app

from conftest import FakeGraphService

runner = CliRunner()


@pytest.fixture
def cli_store(monkeypatch, tree_graphs, selection_store):
    """One store shared by every command invocation in a test."""
    store = GraphStore(
        FakeGraphService(tree_graphs),
        StaticSessionProvider(Actor(user_id="owner-1", team_id="team-1")),
        selection_store=selection_store,
        default_team_id="team-1",
    )
    monkeypatch.setattr(GraphStore, "from_settings", lambda settings: store)
    return store


def test_list_marks_current_graph(cli_store):
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "Child A" in result.output
    assert "*" in result.output


def test_tree_shows_nested_graphs(cli_store):
    result = runner.invoke(app, ["tree"])

    assert result.exit_code == 0
    assert "Grandchild" in result.output
    assert "Other Root" in result.output


def test_create_under_parent(cli_store):
    result = runner.invoke(app, ["create", "Beta", "--type", "SUBGRAPH", "--parent", "root"])

    assert result.exit_code == 0
    assert "Created graph" in result.output
    beta = next(graph for graph in cli_store.graphs if graph.name == "Beta")
    assert beta.path == ["root"]
    assert cli_store.current_graph == beta


def test_duplicate_name_exits_with_error(cli_store):
    result = runner.invoke(app, ["create", "child a"])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_select_is_remembered(cli_store, selection_store):
    result = runner.invoke(app, ["select", "other"])

    assert result.exit_code == 0
    assert selection_store.get("currentGraphId") == "other"


def test_select_unknown_graph_fails(cli_store):
    result = runner.invoke(app, ["select", "missing"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_delete_requires_confirmation(cli_store):
    result = runner.invoke(app, ["delete", "other"], input="n\n")

    assert result.exit_code == 1
    assert cli_store.engine.find_graph("other") is not None


def test_delete_with_yes(cli_store):
    result = runner.invoke(app, ["delete", "other", "--yes"])

    assert result.exit_code == 0
    assert cli_store.engine.find_graph("other") is None


def test_move_reports_local_only_change(cli_store):
    cli_store.engine.service.update_graph = AsyncMock(side_effect=RuntimeError("connection reset"))

    result = runner.invoke(app, ["move", "child-a", "--parent", "other"])

    assert result.exit_code == 0
    assert "only locally" in result.output
    assert cli_store.get_graph_path_ids("grandchild") == ["other", "child-a"]


def test_can_shows_permission_triple(cli_store):
    result = runner.invoke(app, ["can", "root"])

    assert result.exit_code == 0
    assert result.output.count("yes") == 3
