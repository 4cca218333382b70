"""
Tests for hierarchy closure.
"""
import pytest

from factories import add_node
from flowboard.core.errors import DataIntegrityError
from flowboard.services.hierarchy_service import HierarchyService, resolve_descendants

TREE = [
    ("root", None),
    ("a", "root"),
    ("b", "root"),
    ("c", "a"),
    ("other-root", None),
    ("x", "other-root"),
]


class TestResolveDescendants:
    def test_root_expands_to_whole_tree(self):
        assert resolve_descendants(TREE, "root") == {"root", "a", "b", "c"}

    def test_leaf_is_only_itself(self):
        assert resolve_descendants(TREE, "b") == {"b"}

    def test_inner_node(self):
        assert resolve_descendants(TREE, "a") == {"a", "c"}

    def test_other_tree_in_forest_is_untouched(self):
        assert resolve_descendants(TREE, "other-root") == {"other-root", "x"}

    def test_unknown_node_resolves_to_itself(self):
        assert resolve_descendants(TREE, "nope") == {"nope"}

    def test_deep_chain_does_not_recurse(self):
        edges = [("n0", None)] + [(f"n{i}", f"n{i - 1}") for i in range(1, 5000)]
        assert len(resolve_descendants(edges, "n0")) == 5000

    def test_cycle_is_reported(self):
        edges = [("a", "c"), ("b", "a"), ("c", "b")]
        with pytest.raises(DataIntegrityError):
            resolve_descendants(edges, "a")

    def test_self_loop_is_reported(self):
        with pytest.raises(DataIntegrityError):
            resolve_descendants([("a", "a")], "a")

    def test_cycle_elsewhere_does_not_affect_clean_subtree(self):
        edges = TREE + [("p", "q"), ("q", "p")]
        assert resolve_descendants(edges, "a") == {"a", "c"}


class TestHierarchyService:
    async def test_loads_edges_from_store(self, db, tenant):
        nodes = tenant.hierarchy

        region = await HierarchyService.get_descendant_ids(db, nodes["region"].id)
        field_a = await HierarchyService.get_descendant_ids(db, nodes["field_a"].id)
        field_b = await HierarchyService.get_descendant_ids(db, nodes["field_b"].id)

        assert region == {n.id for n in nodes.values()}
        assert field_a == {nodes["field_a"].id, nodes["well_a1"].id}
        assert field_b == {nodes["field_b"].id}

    async def test_loop_in_another_tree_is_not_read(self, db, tenant):
        p = await add_node(db, "Loop P")
        q = await add_node(db, "Loop Q", parent=p)
        p.parent_id = q.id
        await db.flush()

        closure = await HierarchyService.get_descendant_ids(db, tenant.hierarchy["field_a"].id)

        assert closure == {tenant.hierarchy["field_a"].id, tenant.hierarchy["well_a1"].id}

    async def test_loop_below_root_is_reported(self, db, tenant):
        region = tenant.hierarchy["region"]
        region.parent_id = tenant.hierarchy["well_a1"].id
        await db.flush()

        with pytest.raises(DataIntegrityError):
            await HierarchyService.get_descendant_ids(db, tenant.hierarchy["field_a"].id)
