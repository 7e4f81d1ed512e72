"""
Unit Tests: CatalogService structural queries

Tests for services/catalog.py covering:
- list_roots() - items without a parent, ordered by code
- get_item() - lookup by id
- list_children() - direct children with quantities
- reaches() - descendant check used by the cycle guard
"""

import pytest

from exceptions import ItemNotFoundException
from services.catalog import CatalogService
from services.lifecycle import LifecycleService


class TestListRoots:

    @pytest.mark.asyncio
    async def test_empty_catalog_has_no_roots(self, test_session):
        assert await CatalogService.list_roots(test_session) == []

    @pytest.mark.asyncio
    async def test_only_top_of_chain_is_root(self, test_session, abc_chain):
        a, b, c = abc_chain

        roots = await CatalogService.list_roots(test_session)

        assert [r.id for r in roots] == [a.id]

    @pytest.mark.asyncio
    async def test_isolated_items_are_roots_ordered_by_code(self, test_session, make_item):
        await make_item("Z-100")
        await make_item("A-100")
        await make_item("M-100")

        roots = await CatalogService.list_roots(test_session)

        assert [r.code for r in roots] == ["A-100", "M-100", "Z-100"]

    @pytest.mark.asyncio
    async def test_item_with_parent_is_never_root(self, test_session, make_item):
        """An item shared by two assemblies is not a root either."""
        frame = await make_item("FRAME", kind="Assembly")
        cart = await make_item("CART", kind="Assembly")
        bolt = await make_item("BOLT", kind="Standard", parent=frame)
        await LifecycleService.add_composition_edge(cart.id, bolt.id, test_session, quantity=8)

        roots = await CatalogService.list_roots(test_session)

        assert {r.code for r in roots} == {"FRAME", "CART"}

    @pytest.mark.asyncio
    async def test_child_becomes_root_when_last_edge_removed(self, test_session, abc_chain):
        a, b, c = abc_chain
        children = await CatalogService.list_children(a.id, test_session)

        await LifecycleService.delete_composition_edge(children[0].edge_id, test_session)

        roots = await CatalogService.list_roots(test_session)
        assert [r.code for r in roots] == ["A", "B"]


class TestGetItem:

    @pytest.mark.asyncio
    async def test_get_existing_item(self, test_session, make_item):
        item = await make_item("P-1", mass_kg=1.5)

        loaded = await CatalogService.get_item(item.id, test_session)

        assert loaded.code == "P-1"
        assert loaded.kind == "Part"
        assert loaded.mass_kg == 1.5
        assert loaded.length_mm is None

    @pytest.mark.asyncio
    async def test_get_unknown_item_raises(self, test_session):
        with pytest.raises(ItemNotFoundException) as exc_info:
            await CatalogService.get_item(999, test_session)

        assert exc_info.value.item_id == 999


class TestListChildren:

    @pytest.mark.asyncio
    async def test_children_carry_edge_and_quantity(self, test_session, abc_chain):
        a, b, c = abc_chain

        children = await CatalogService.list_children(b.id, test_session)

        assert len(children) == 1
        assert children[0].id == c.id
        assert children[0].code == "C"
        assert children[0].quantity == 3
        assert children[0].edge_id is not None

    @pytest.mark.asyncio
    async def test_children_ordered_by_code(self, test_session, make_item):
        parent = await make_item("ASM", kind="Assembly")
        await make_item("WASHER", kind="Standard", parent=parent)
        await make_item("AXLE", parent=parent)
        await make_item("NUT", kind="Standard", parent=parent)

        children = await CatalogService.list_children(parent.id, test_session)

        assert [c.code for c in children] == ["AXLE", "NUT", "WASHER"]

    @pytest.mark.asyncio
    async def test_leaf_has_no_children(self, test_session, abc_chain):
        a, b, c = abc_chain
        assert await CatalogService.list_children(c.id, test_session) == []

    @pytest.mark.asyncio
    async def test_unknown_parent_returns_empty_list(self, test_session):
        assert await CatalogService.list_children(12345, test_session) == []

    @pytest.mark.asyncio
    async def test_duplicate_edges_listed_separately(self, test_session, make_item):
        parent = await make_item("ASM", kind="Assembly")
        screw = await make_item("SCREW", kind="Standard", parent=parent, quantity=4)
        await LifecycleService.add_composition_edge(parent.id, screw.id, test_session, quantity=2)

        children = await CatalogService.list_children(parent.id, test_session)

        assert [c.quantity for c in children] == [4, 2]
        assert children[0].edge_id < children[1].edge_id


class TestReaches:

    @pytest.mark.asyncio
    async def test_item_reaches_itself(self, test_session, abc_chain):
        a, b, c = abc_chain
        assert await CatalogService.reaches(b.id, b.id, test_session) is True

    @pytest.mark.asyncio
    async def test_grandchild_is_reachable(self, test_session, abc_chain):
        a, b, c = abc_chain
        assert await CatalogService.reaches(a.id, c.id, test_session) is True

    @pytest.mark.asyncio
    async def test_ancestor_is_not_reachable(self, test_session, abc_chain):
        a, b, c = abc_chain
        assert await CatalogService.reaches(c.id, a.id, test_session) is False

    @pytest.mark.asyncio
    async def test_diamond_is_walked_once(self, test_session, make_item):
        """A -> B, A -> C, B -> D, C -> D: D reachable, A not reachable from D."""
        a = await make_item("A", kind="Assembly")
        b = await make_item("B", kind="Assembly", parent=a)
        c = await make_item("C", kind="Assembly", parent=a)
        d = await make_item("D", parent=b)
        await LifecycleService.add_composition_edge(c.id, d.id, test_session)

        assert await CatalogService.reaches(a.id, d.id, test_session) is True
        assert await CatalogService.reaches(d.id, a.id, test_session) is False
