"""Tests for the label hierarchy resolver."""

import pytest

from labelhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from labelhub.services.hierarchy import HierarchyResolver

from conftest import label_actor


class TestDescendants:

    @pytest.mark.asyncio
    async def test_descendants_exclude_self(self, store, network):
        resolver = HierarchyResolver(store)
        assert await resolver.descendant_label_ids(network.root) == {"dance", "deep", "acoustic"}
        assert await resolver.descendant_label_ids(network.dance) == {"deep"}

    @pytest.mark.asyncio
    async def test_leaf_has_no_descendants(self, store, network):
        resolver = HierarchyResolver(store)
        assert await resolver.descendant_label_ids(network.deep) == set()
        assert await resolver.descendant_label_ids("unknown") == set()

    @pytest.mark.asyncio
    async def test_descendant_sets_are_closed(self, store, network):
        """Every descendant of a descendant is itself a descendant."""
        resolver = HierarchyResolver(store)
        root_set = await resolver.descendant_label_ids(network.root)
        for label_id in root_set:
            assert await resolver.descendant_label_ids(label_id) <= root_set

    @pytest.mark.asyncio
    async def test_results_memoized_until_invalidated(self, store, network):
        resolver = HierarchyResolver(store)
        assert await resolver.descendant_label_ids(network.deep) == set()

        await store.create_label({"id": "minimal", "name": "Aurora Minimal", "parent_label_id": network.deep})
        await store.commit()
        assert await resolver.descendant_label_ids(network.deep) == set()

        resolver.invalidate()
        assert await resolver.descendant_label_ids(network.deep) == {"minimal"}

    @pytest.mark.asyncio
    async def test_returned_set_is_a_copy(self, store, network):
        resolver = HierarchyResolver(store)
        found = await resolver.descendant_label_ids(network.root)
        found.clear()
        assert await resolver.descendant_label_ids(network.root) == {"dance", "deep", "acoustic"}

    @pytest.mark.asyncio
    async def test_corrupt_cycle_terminates(self, store, network):
        await store.update_label(network.root, {"parent_label_id": network.deep})
        await store.commit()
        resolver = HierarchyResolver(store)
        assert await resolver.descendant_label_ids(network.root) == {"dance", "deep", "acoustic"}
        assert network.deep in await resolver.ancestor_ids(network.root)


class TestVisibility:

    @pytest.mark.asyncio
    async def test_visible_artists_cover_subtree(self, store, network, make_artist):
        await make_artist(network.root, "Root Artist")
        await make_artist(network.deep, "Deep Artist")
        await make_artist(network.rival, "Rival Artist")
        resolver = HierarchyResolver(store)

        names = {artist.name for artist in await resolver.visible_artists(network.dance)}
        assert names == {"Deep Artist"}
        names = {artist.name for artist in await resolver.visible_artists(network.root)}
        assert names == {"Root Artist", "Deep Artist"}

    @pytest.mark.asyncio
    async def test_visible_releases_cover_subtree(self, store, network, make_release):
        await make_release(network.deep, title="Deep Cuts")
        await make_release(network.rival, title="Rival Hits")
        resolver = HierarchyResolver(store)

        titles = [release.title for release in await resolver.visible_releases(network.root)]
        assert titles == ["Deep Cuts"]

    @pytest.mark.asyncio
    async def test_scope_for_staff_is_unrestricted(self, store, network, owner, employee):
        resolver = HierarchyResolver(store)
        assert await resolver.scope_label_ids(owner) is None
        assert await resolver.in_scope(employee, network.rival)

    @pytest.mark.asyncio
    async def test_label_user_scope(self, store, network):
        resolver = HierarchyResolver(store)
        actor = label_actor(network.dance)
        assert await resolver.scope_label_ids(actor) == {"dance", "deep"}
        await resolver.ensure_in_scope(actor, network.deep)
        with pytest.raises(AuthorizationError):
            await resolver.ensure_in_scope(actor, network.root)
        with pytest.raises(AuthorizationError):
            await resolver.ensure_in_scope(actor, None)


class TestAcyclicity:

    @pytest.mark.asyncio
    async def test_cannot_parent_under_descendant(self, store, network):
        resolver = HierarchyResolver(store)
        with pytest.raises(ValidationError):
            await resolver.ensure_acyclic(network.root, network.deep)

    @pytest.mark.asyncio
    async def test_cannot_parent_under_self(self, store, network):
        resolver = HierarchyResolver(store)
        with pytest.raises(ValidationError):
            await resolver.ensure_acyclic(network.dance, network.dance)

    @pytest.mark.asyncio
    async def test_valid_reparent_and_new_label(self, store, network):
        resolver = HierarchyResolver(store)
        await resolver.ensure_acyclic(network.deep, network.acoustic)
        await resolver.ensure_acyclic("brand-new", network.deep)
        await resolver.ensure_acyclic(network.dance, None)

    @pytest.mark.asyncio
    async def test_missing_parent(self, store, network):
        resolver = HierarchyResolver(store)
        with pytest.raises(NotFoundError):
            await resolver.ensure_acyclic(network.dance, "nowhere")

    @pytest.mark.asyncio
    async def test_ancestor_chain_nearest_first(self, store, network):
        resolver = HierarchyResolver(store)
        assert await resolver.ancestor_ids(network.deep) == ["dance", "aurora"]
        assert await resolver.ancestor_ids(network.root) == []
