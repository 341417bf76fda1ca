"""Tests for the release status machine."""

import itertools

import pytest

from labelhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from labelhub.models.release import ReleaseStatus
from labelhub.services.lifecycle import (
    RESUBMIT_NOTE,
    TRANSITIONS,
    ReleaseLifecycleController,
    allowed_targets,
    rule_for,
)

from conftest import label_actor


@pytest.fixture
def lifecycle(store, storage):
    return ReleaseLifecycleController(store, storage)


class TestTransitionTable:

    @pytest.mark.parametrize("current,target", list(itertools.product(list(ReleaseStatus), list(ReleaseStatus))))
    def test_only_listed_transitions_are_legal(self, current, target):
        if (current, target) in TRANSITIONS:
            assert rule_for(current, target) is TRANSITIONS[(current, target)]
        else:
            with pytest.raises(ValidationError):
                rule_for(current, target)

    def test_new_release_starts_as_draft_or_pending(self):
        assert rule_for(None, ReleaseStatus.DRAFT)
        assert rule_for(None, ReleaseStatus.PENDING)
        with pytest.raises(ValidationError):
            rule_for(None, ReleaseStatus.PUBLISHED)

    def test_unreachable_statuses_have_no_way_in(self):
        targets = {target for (_, target) in TRANSITIONS}
        assert ReleaseStatus.APPROVED not in targets
        assert ReleaseStatus.PROCESSED not in targets
        assert ReleaseStatus.CANCELLED not in targets

    def test_notes_and_purges(self):
        assert rule_for(ReleaseStatus.PENDING, ReleaseStatus.NEEDS_INFO).note_required
        assert rule_for(ReleaseStatus.PUBLISHED, ReleaseStatus.TAKEDOWN).note_required
        assert rule_for(ReleaseStatus.PUBLISHED, ReleaseStatus.TAKEDOWN).purge_assets
        assert rule_for(ReleaseStatus.PENDING, ReleaseStatus.REJECTED).purge_assets
        assert not rule_for(ReleaseStatus.PENDING, ReleaseStatus.PUBLISHED).purge_assets

    def test_allowed_targets_by_party(self, owner):
        label_user = label_actor("dance")
        assert allowed_targets(ReleaseStatus.DRAFT, label_user) == [ReleaseStatus.PENDING]
        assert allowed_targets(ReleaseStatus.PENDING, label_user) == []
        assert set(allowed_targets(ReleaseStatus.PENDING, owner)) == {ReleaseStatus.NEEDS_INFO, ReleaseStatus.PUBLISHED, ReleaseStatus.REJECTED}


class TestTransitions:

    @pytest.mark.asyncio
    async def test_label_submits_draft(self, lifecycle, network, make_release):
        release = await make_release(network.dance)
        updated = await lifecycle.transition(release.id, ReleaseStatus.PENDING, label_actor(network.root))
        assert updated.status == ReleaseStatus.PENDING
        assert updated.updated_at >= release.updated_at

    @pytest.mark.asyncio
    async def test_incomplete_draft_cannot_be_submitted(self, lifecycle, network, make_release):
        release = await make_release(network.dance, complete=False)
        with pytest.raises(ValidationError):
            await lifecycle.transition(release.id, ReleaseStatus.PENDING, label_actor(network.dance))
        assert (await lifecycle.store.get_release(release.id)).status == ReleaseStatus.DRAFT

    @pytest.mark.asyncio
    async def test_submit_requires_permission(self, lifecycle, network, make_release):
        release = await make_release(network.dance)
        actor = label_actor(network.dance, can_submit_albums=False)
        with pytest.raises(AuthorizationError):
            await lifecycle.transition(release.id, ReleaseStatus.PENDING, actor)

    @pytest.mark.asyncio
    async def test_label_outside_scope(self, lifecycle, network, make_release):
        release = await make_release(network.dance)
        with pytest.raises(AuthorizationError):
            await lifecycle.transition(release.id, ReleaseStatus.PENDING, label_actor(network.rival))

    @pytest.mark.asyncio
    async def test_label_cannot_publish(self, lifecycle, network, make_release):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        with pytest.raises(AuthorizationError):
            await lifecycle.transition(release.id, ReleaseStatus.PUBLISHED, label_actor(network.dance))

    @pytest.mark.asyncio
    async def test_illegal_transition(self, lifecycle, network, make_release, owner):
        release = await make_release(network.dance)
        with pytest.raises(ValidationError, match="Illegal status transition: Draft -> Published"):
            await lifecycle.transition(release.id, ReleaseStatus.PUBLISHED, owner)

    @pytest.mark.asyncio
    async def test_unknown_release(self, lifecycle, owner):
        with pytest.raises(NotFoundError):
            await lifecycle.transition("missing", ReleaseStatus.PUBLISHED, owner)

    @pytest.mark.asyncio
    async def test_needs_info_requires_message(self, lifecycle, network, make_release, employee):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        with pytest.raises(ValidationError):
            await lifecycle.transition(release.id, ReleaseStatus.NEEDS_INFO, employee, "   ")
        assert (await lifecycle.store.get_release(release.id)).status == ReleaseStatus.PENDING

    @pytest.mark.asyncio
    async def test_notes_are_prepended(self, lifecycle, network, make_release, employee):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        await lifecycle.transition(release.id, ReleaseStatus.NEEDS_INFO, employee, "Fix the UPC")
        updated = await lifecycle.transition(release.id, ReleaseStatus.NEEDS_INFO, employee, "  And the cover  ")

        assert [note.message for note in updated.notes] == ["And the cover", "Fix the UPC"]
        assert updated.notes[0].author_name == "Eddie Employee"
        assert updated.notes[0].author_role == "Employee"

    @pytest.mark.asyncio
    async def test_resubmit_adds_automatic_note(self, lifecycle, network, make_release, employee):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        await lifecycle.transition(release.id, ReleaseStatus.NEEDS_INFO, employee, "Fix the UPC")
        updated = await lifecycle.transition(release.id, ReleaseStatus.PENDING, label_actor(network.dance))

        assert updated.status == ReleaseStatus.PENDING
        assert updated.notes[0].message == RESUBMIT_NOTE
        assert len(updated.notes) == 2

    @pytest.mark.asyncio
    async def test_takedown_without_reason_keeps_published(self, lifecycle, storage, network, make_release, owner):
        release = await make_release(network.dance, status=ReleaseStatus.PUBLISHED)
        with pytest.raises(ValidationError):
            await lifecycle.transition(release.id, ReleaseStatus.TAKEDOWN, owner)

        stored = await lifecycle.store.get_release(release.id)
        assert stored.status == ReleaseStatus.PUBLISHED
        assert stored.artwork_url is not None
        assert storage.deleted == []

    @pytest.mark.asyncio
    async def test_takedown_purges_assets(self, lifecycle, storage, network, make_release, owner):
        release = await make_release(network.dance, status=ReleaseStatus.PUBLISHED)
        updated = await lifecycle.transition(release.id, ReleaseStatus.TAKEDOWN, owner, "Rights dispute")

        assert updated.status == ReleaseStatus.TAKEDOWN
        assert set(storage.deleted) == set(release.asset_urls())
        assert updated.artwork_url is None
        assert all(track.audio_url is None for track in updated.tracks)
        assert updated.notes[0].message == "Rights dispute"

    @pytest.mark.asyncio
    async def test_reject_tolerates_failed_deletes(self, lifecycle, storage, network, make_release, employee):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        stuck = release.tracks[0].audio_url
        storage.fail_deletes.add(stuck)

        updated = await lifecycle.transition(release.id, ReleaseStatus.REJECTED, employee)

        assert updated.status == ReleaseStatus.REJECTED
        assert updated.tracks[0].audio_url == stuck
        assert updated.tracks[1].audio_url is None
        assert updated.artwork_url is None


class TestQueues:

    @pytest.mark.asyncio
    async def test_incoming_queue_newest_first(self, lifecycle, network, make_release, employee):
        draft = await make_release(network.dance, title="Draft One")
        first = await make_release(network.dance, status=ReleaseStatus.PENDING, title="First")
        second = await make_release(network.deep, status=ReleaseStatus.PENDING, title="Second")
        await make_release(network.rival, status=ReleaseStatus.NEEDS_INFO, title="Waiting")

        # Touching the older release moves it to the top
        await lifecycle.transition(first.id, ReleaseStatus.PUBLISHED, employee)
        queue = await lifecycle.incoming_queue(employee)

        assert [release.id for release in queue] == [first.id, second.id]
        assert draft.id not in [release.id for release in queue]

    @pytest.mark.asyncio
    async def test_incoming_queue_is_staff_only(self, lifecycle, network):
        with pytest.raises(AuthorizationError):
            await lifecycle.incoming_queue(label_actor(network.root))

    @pytest.mark.asyncio
    async def test_correction_queue_scoped(self, lifecycle, network, make_release):
        mine = await make_release(network.deep, status=ReleaseStatus.NEEDS_INFO, title="Mine")
        await make_release(network.rival, status=ReleaseStatus.NEEDS_INFO, title="Theirs")
        await make_release(network.deep, status=ReleaseStatus.PENDING, title="Pending")

        queue = await lifecycle.correction_queue(label_actor(network.dance))
        assert [release.id for release in queue] == [mine.id]

    @pytest.mark.asyncio
    async def test_label_releases_scoped(self, lifecycle, network, make_release, owner):
        await make_release(network.deep, title="Deep")
        await make_release(network.acoustic, title="Acoustic")
        await make_release(network.rival, title="Rival")

        titles = {release.title for release in await lifecycle.label_releases(label_actor(network.dance))}
        assert titles == {"Deep"}
        assert len(await lifecycle.label_releases(owner)) == 3


class TestDeleteRelease:

    @pytest.mark.asyncio
    async def test_label_deletes_own_draft(self, lifecycle, storage, network, make_release):
        release = await make_release(network.dance)
        await lifecycle.delete_release(release.id, label_actor(network.dance))

        assert set(storage.deleted) == set(release.asset_urls())
        with pytest.raises(NotFoundError):
            await lifecycle.store.get_release(release.id)

    @pytest.mark.asyncio
    async def test_label_cannot_delete_submitted(self, lifecycle, network, make_release):
        release = await make_release(network.dance, status=ReleaseStatus.PENDING)
        with pytest.raises(AuthorizationError):
            await lifecycle.delete_release(release.id, label_actor(network.dance))

    @pytest.mark.asyncio
    async def test_staff_needs_delete_permission(self, lifecycle, network, make_release, employee, owner):
        release = await make_release(network.dance, status=ReleaseStatus.PUBLISHED)
        with pytest.raises(AuthorizationError):
            await lifecycle.delete_release(release.id, employee)
        await lifecycle.delete_release(release.id, owner)
        with pytest.raises(NotFoundError):
            await lifecycle.store.get_release(release.id)
