from unittest.mock import AsyncMock

import pytest

from graphdone.config import Settings
from graphdone.core.client import GraphQLGraphService
from graphdone.core.errors import GraphNotFoundError, GraphValidationError
from graphdone.core.schemas import Actor, SyncState, TeamPermission
from graphdone.core.session import CURRENT_GRAPH_KEY, SqlSelectionStore, StaticSessionProvider
from graphdone.core.store import GraphStore

from conftest import FakeGraphService, make_graph


@pytest.fixture
def seeded_service(tree_graphs):
    return FakeGraphService(tree_graphs)


@pytest.fixture
def seeded_store(seeded_service, actor, selection_store):
    return GraphStore(
        service=seeded_service,
        session=StaticSessionProvider(actor),
        selection_store=selection_store,
        default_team_id="team-1",
    )


class TestLoading:
    @pytest.mark.asyncio
    async def test_load_selects_first_graph(self, seeded_store):
        graphs = await seeded_store.load_graphs()

        assert len(graphs) == 5
        assert seeded_store.current_graph.id == "root"
        assert seeded_store.is_loading is False
        assert not seeded_store.has_unsynced_changes

    @pytest.mark.asyncio
    async def test_load_restores_persisted_selection(self, seeded_store, selection_store):
        selection_store.set(CURRENT_GRAPH_KEY, "child-b")

        await seeded_store.load_graphs()

        assert seeded_store.current_graph.id == "child-b"

    @pytest.mark.asyncio
    async def test_stale_persisted_selection_is_ignored(self, seeded_store, selection_store):
        selection_store.set(CURRENT_GRAPH_KEY, "deleted-elsewhere")

        await seeded_store.load_graphs()

        assert seeded_store.current_graph.id == "root"

    @pytest.mark.asyncio
    async def test_load_queries_actor_team(self, seeded_store, seeded_service):
        seeded_service.graphs["foreign"] = make_graph("foreign", team_id="team-2")

        graphs = await seeded_store.load_graphs()

        assert "foreign" not in {graph.id for graph in graphs}

    @pytest.mark.asyncio
    async def test_first_load_failure_uses_demo_graphs(self, store, service):
        service.fail = True

        graphs = await store.load_graphs()

        assert [graph.id for graph in graphs][:2] == ["graph-1", "graph-2"]
        assert all(graph.team_id == "team-1" for graph in graphs)
        assert all(graph.sync_state == SyncState.LOCAL_ONLY for graph in graphs)
        assert store.current_graph.id == "graph-1"
        assert store.check_invariants() == []

    @pytest.mark.asyncio
    async def test_later_failure_keeps_last_known_graphs(self, seeded_store, seeded_service):
        await seeded_store.load_graphs()
        seeded_service.fail = True

        graphs = await seeded_store.refresh_graphs()

        assert [graph.id for graph in graphs] == ["root", "child-a", "grandchild", "child-b", "other"]

    @pytest.mark.asyncio
    async def test_failure_without_demo_fallback_is_empty(self, service, actor):
        service.fail = True
        store = GraphStore(service, StaticSessionProvider(actor), demo_fallback=False)

        assert await store.load_graphs() == []
        assert store.current_graph is None
        assert store.hierarchy == []


class TestSelection:
    @pytest.mark.asyncio
    async def test_select_is_idempotent_and_persisted(self, seeded_store, selection_store):
        await seeded_store.load_graphs()

        seeded_store.select_graph("other")
        graphs_after_first = list(seeded_store.graphs)
        current_after_first = seeded_store.current_graph
        seeded_store.select_graph("other")

        assert seeded_store.current_graph == current_after_first
        assert seeded_store.graphs == graphs_after_first
        assert selection_store.get(CURRENT_GRAPH_KEY) == "other"

    @pytest.mark.asyncio
    async def test_select_unknown_graph_raises(self, seeded_store):
        await seeded_store.load_graphs()

        with pytest.raises(GraphNotFoundError):
            seeded_store.select_graph("missing")

        assert seeded_store.current_graph.id == "root"


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_updates_hierarchy_and_selection(self, seeded_store, selection_store):
        await seeded_store.load_graphs()

        graph = await seeded_store.create_graph(name="Beta", parent_graph_id="other")

        assert seeded_store.current_graph == graph
        assert selection_store.get(CURRENT_GRAPH_KEY) == graph.id
        other = next(node for node in seeded_store.hierarchy if node.id == "other")
        assert [child.id for child in other.children] == [graph.id]

    @pytest.mark.asyncio
    async def test_is_creating_is_set_while_creating(self, store, service):
        seen = {}
        original_create = service.create_graph

        async def spy(payload):
            seen["is_creating"] = store.is_creating
            return await original_create(payload)

        service.create_graph = spy

        await store.create_graph(name="Alpha")

        assert seen["is_creating"] is True
        assert store.is_creating is False

    @pytest.mark.asyncio
    async def test_is_creating_resets_after_validation_error(self, store):
        with pytest.raises(GraphValidationError):
            await store.create_graph(name="")

        assert store.is_creating is False

    @pytest.mark.asyncio
    async def test_local_only_graphs_are_observable(self, store, service):
        service.fail = True

        graph = await store.create_graph(name="Offline")

        assert store.has_unsynced_changes
        assert graph in store.local_only_graphs()

    @pytest.mark.asyncio
    async def test_delete_current_rewrites_persisted_selection(self, seeded_store, selection_store):
        await seeded_store.load_graphs()
        seeded_store.select_graph("other")

        await seeded_store.delete_graph("other")

        assert seeded_store.current_graph.id == "root"
        assert selection_store.get(CURRENT_GRAPH_KEY) == "root"

    @pytest.mark.asyncio
    async def test_deleting_last_graph_clears_persisted_selection(self, store, selection_store):
        graph = await store.create_graph(name="Only")

        await store.delete_graph(graph.id)

        assert store.current_graph is None
        assert selection_store.get(CURRENT_GRAPH_KEY) is None

    @pytest.mark.asyncio
    async def test_update_accepts_keyword_fields(self, seeded_store):
        await seeded_store.load_graphs()

        graph = await seeded_store.update_graph("other", description="Notes")

        assert graph.description == "Notes"

    @pytest.mark.asyncio
    async def test_update_cannot_relocate_or_clear_fields(self, seeded_store, seeded_service):
        await seeded_store.load_graphs()
        seeded_service.fail = True

        with pytest.raises(GraphValidationError):
            await seeded_store.update_graph("child-b", parent_graph_id="other")
        with pytest.raises(GraphValidationError):
            await seeded_store.update_graph("root", parent_graph_id="grandchild")
        with pytest.raises(GraphValidationError):
            await seeded_store.update_graph("root", status=None, permissions=None)

        assert seeded_store.check_invariants() == []
        assert [root.id for root in seeded_store.hierarchy] == ["root", "other"]
        assert seeded_store.can_edit_graph("root") is False

    @pytest.mark.asyncio
    async def test_share_graph_merges_settings(self, seeded_store):
        await seeded_store.load_graphs()

        graph = await seeded_store.share_graph("root", is_public=True, allow_forking=True)

        assert graph.is_shared
        assert graph.share_settings.is_public
        assert graph.share_settings.allow_forking
        assert graph.share_settings.allow_team_access

    @pytest.mark.asyncio
    async def test_update_permissions_merges_roles(self, seeded_store):
        await seeded_store.load_graphs()

        graph = await seeded_store.update_permissions(
            "root", editors=["user-1"], team_permission=TeamPermission.EDIT
        )

        assert graph.permissions.owner == "owner-1"
        assert graph.permissions.admins == ["owner-1"]
        assert graph.permissions.editors == ["user-1"]
        assert seeded_store.can_edit_graph("root")
        assert not seeded_store.can_delete_graph("root")

    @pytest.mark.asyncio
    async def test_move_keeps_invariants(self, seeded_store):
        await seeded_store.load_graphs()

        await seeded_store.move_graph("child-a", "child-b")

        assert seeded_store.get_graph_path_ids("grandchild") == ["root", "child-b", "child-a"]
        assert seeded_store.check_invariants() == []

    @pytest.mark.asyncio
    async def test_duplicate_selects_copy(self, seeded_store, selection_store):
        await seeded_store.load_graphs()

        copy = await seeded_store.duplicate_graph("root", "Root 2")

        assert seeded_store.current_graph == copy
        assert selection_store.get(CURRENT_GRAPH_KEY) == copy.id


class TestLookups:
    @pytest.mark.asyncio
    async def test_path_children_and_depth(self, seeded_store):
        await seeded_store.load_graphs()

        assert [graph.id for graph in seeded_store.get_graph_path("grandchild")] == ["root", "child-a"]
        assert [graph.id for graph in seeded_store.get_graph_children("root")] == ["child-a", "child-b"]
        assert seeded_store.get_graph_depth("grandchild") == 2
        assert seeded_store.get_graph_depth("missing") == 0
        assert seeded_store.get_graph_path("missing") == []
        assert seeded_store.get_graph_children("missing") == []

    @pytest.mark.asyncio
    async def test_permission_wrappers_use_session_actor(self, seeded_service):
        store = GraphStore(
            seeded_service,
            StaticSessionProvider(Actor(user_id="owner-1", team_id="team-1")),
        )
        await store.load_graphs()

        assert store.can_edit_graph("root")
        assert store.can_delete_graph("root")
        assert store.can_share_graph("root")
        assert not store.can_edit_graph("missing")

    @pytest.mark.asyncio
    async def test_unrelated_actor_cannot_edit(self, seeded_store):
        await seeded_store.load_graphs()

        assert not seeded_store.can_edit_graph("root")
        assert not seeded_store.can_delete_graph("root")
        assert not seeded_store.can_share_graph("root")

    @pytest.mark.asyncio
    async def test_hierarchy_is_rebuilt_on_read(self, seeded_store):
        await seeded_store.load_graphs()

        first = seeded_store.hierarchy
        second = seeded_store.hierarchy

        assert first == second
        assert first is not second


@pytest.mark.asyncio
async def test_list_failure_is_logged_not_raised(store, service, caplog):
    service.list_graphs = AsyncMock(side_effect=RuntimeError("dns failure"))

    with caplog.at_level("WARNING"):
        await store.load_graphs()

    assert "dns failure" in caplog.text


def test_from_settings_wires_sqlite_selection_store(tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path}/session.db",
        user_id="user-7",
        team_id="team-7",
        demo_fallback=False,
    )

    store = GraphStore.from_settings(settings)

    assert isinstance(store.engine.service, GraphQLGraphService)
    assert isinstance(store.selection_store, SqlSelectionStore)
    assert store.actor == Actor(user_id="user-7", team_id="team-7")
    assert store.default_team_id == "team-7"
    assert store.demo_fallback is False
    assert (tmp_path / "session.db").exists()
