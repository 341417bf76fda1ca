import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from labelhub.core.exceptions import AuthorizationError, ValidationError
from labelhub.models.release import ReleaseStatus
from labelhub.schemas.release import ReleaseResponse
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.hierarchy import HierarchyResolver
from labelhub.services.storage import StorageService

logger = logging.getLogger(__name__)


class Party(str, enum.Enum):
    LABEL = "label"
    STAFF = "staff"


@dataclass(frozen=True)
class TransitionRule:
    party: Party
    note_required: bool = False
    purge_assets: bool = False


# (from, to) -> rule. `None` as the source is a release that does not exist yet.
# Anything missing from this table is illegal.
TRANSITIONS: Dict[Tuple[Optional[ReleaseStatus], ReleaseStatus], TransitionRule] = {
    (None, ReleaseStatus.DRAFT): TransitionRule(Party.LABEL),
    (None, ReleaseStatus.PENDING): TransitionRule(Party.LABEL),
    (ReleaseStatus.DRAFT, ReleaseStatus.PENDING): TransitionRule(Party.LABEL),
    (ReleaseStatus.PENDING, ReleaseStatus.NEEDS_INFO): TransitionRule(Party.STAFF, note_required=True),
    (ReleaseStatus.NEEDS_INFO, ReleaseStatus.NEEDS_INFO): TransitionRule(Party.STAFF, note_required=True),
    (ReleaseStatus.PENDING, ReleaseStatus.PUBLISHED): TransitionRule(Party.STAFF),
    (ReleaseStatus.NEEDS_INFO, ReleaseStatus.PUBLISHED): TransitionRule(Party.STAFF),
    (ReleaseStatus.PENDING, ReleaseStatus.REJECTED): TransitionRule(Party.STAFF, purge_assets=True),
    (ReleaseStatus.NEEDS_INFO, ReleaseStatus.REJECTED): TransitionRule(Party.STAFF, purge_assets=True),
    (ReleaseStatus.APPROVED, ReleaseStatus.REJECTED): TransitionRule(Party.STAFF, purge_assets=True),
    (ReleaseStatus.PUBLISHED, ReleaseStatus.TAKEDOWN): TransitionRule(Party.STAFF, note_required=True, purge_assets=True),
    (ReleaseStatus.NEEDS_INFO, ReleaseStatus.PENDING): TransitionRule(Party.LABEL),
}

# Statuses in which the label may still edit or delete its own release
EDITABLE_STATUSES = frozenset({ReleaseStatus.DRAFT, ReleaseStatus.NEEDS_INFO})

RESUBMIT_NOTE = "Resubmitted for review after corrections."


def rule_for(current: Optional[ReleaseStatus], target: ReleaseStatus) -> TransitionRule:
    rule = TRANSITIONS.get((current, target))
    if rule is None:
        source = current.value if current else "new release"
        raise ValidationError(f"Illegal status transition: {source} -> {target.value}")
    return rule


def allowed_targets(current: Optional[ReleaseStatus], actor: Actor) -> List[ReleaseStatus]:
    """Statuses the actor could move a release to from `current`, ignoring scope."""
    party = Party.STAFF if actor.is_staff else Party.LABEL
    return [
        target for (source, target), rule in TRANSITIONS.items()
        if source == current and (rule.party == party or (actor.is_staff and rule.party == Party.LABEL))
    ]


def ensure_submittable(release) -> None:
    """A release leaving Draft needs a label, primary artists and every asset committed."""
    if not release.label_id:
        raise ValidationError("Target label is mandatory for submission.")
    if not release.primary_artist_ids:
        raise ValidationError("At least one primary artist is mandatory for submission.")
    if not release.artwork_url:
        raise ValidationError("Cover art is mandatory for submission.")
    if not release.tracks:
        raise ValidationError("At least one track is mandatory for submission.")
    if any(not track.audio_url for track in release.tracks):
        raise ValidationError("All tracks must have masters for submission.")


class ReleaseLifecycleController:
    """Owns the release status machine and the side effects of each transition."""

    def __init__(self, store: EntityStore, storage: StorageService, resolver: Optional[HierarchyResolver] = None):
        self.store = store
        self.storage = storage
        self.resolver = resolver or HierarchyResolver(store)

    async def _authorize(self, rule: TransitionRule, actor: Actor, label_id: Optional[str], target: ReleaseStatus) -> None:
        if rule.party == Party.STAFF:
            if not actor.is_staff:
                raise AuthorizationError(f"Only platform staff can move a release to {target.value}")
            return
        if actor.is_staff:
            return
        await self.resolver.ensure_in_scope(actor, label_id)
        if target == ReleaseStatus.PENDING and not actor.permissions.can_submit_albums:
            raise AuthorizationError("You are not authorized to submit releases for distribution")

    async def initial_status(self, actor: Actor, label_id: Optional[str], submit: bool) -> ReleaseStatus:
        """Status a brand new release starts in: Pending when submitted, Draft otherwise."""
        target = ReleaseStatus.PENDING if submit else ReleaseStatus.DRAFT
        await self._authorize(rule_for(None, target), actor, label_id, target)
        return target

    async def check_transition(self, release: ReleaseResponse, target: ReleaseStatus, actor: Actor) -> TransitionRule:
        rule = rule_for(release.status, target)
        await self._authorize(rule, actor, release.label_id, target)
        return rule

    async def apply_transition(
        self,
        release_id: str,
        target: ReleaseStatus,
        actor: Actor,
        message: Optional[str] = None,
    ) -> ReleaseResponse:
        """Validate and apply a transition inside the current unit of work, without committing."""
        release = await self.store.get_release(release_id)
        rule = await self.check_transition(release, target, actor)

        message = (message or "").strip() or None
        if rule.note_required and not message:
            raise ValidationError(f"A message is required to move a release to {target.value}")
        if target == ReleaseStatus.PENDING:
            ensure_submittable(release)
            if release.status == ReleaseStatus.NEEDS_INFO and not message:
                message = RESUBMIT_NOTE

        previous = release.status
        release = await self.store.set_release_status(release_id, target)
        if message:
            release = await self.store.add_note(release_id, actor.name, actor.role.value, message)
        if rule.purge_assets:
            release = await self.purge_assets(release)

        logger.info(f"Release {release_id} moved {previous.value} -> {target.value} by {actor.id}")
        return release

    async def transition(
        self,
        release_id: str,
        target: ReleaseStatus,
        actor: Actor,
        message: Optional[str] = None,
    ) -> ReleaseResponse:
        try:
            release = await self.apply_transition(release_id, target, actor, message)
            await self.store.commit()
            return release
        except BaseException:
            await self.store.rollback()
            raise

    async def delete_assets(self, release: ReleaseResponse) -> List[str]:
        deleted = []
        for url in release.asset_urls():
            try:
                await self.storage.delete(url)
                deleted.append(url)
            except Exception as e:
                # Content must leave discovery even if storage cleanup is incomplete
                logger.warning(f"Could not delete asset {url} of release {release.id}: {e}")
        return deleted

    async def purge_assets(self, release: ReleaseResponse) -> ReleaseResponse:
        """Delete every uploaded asset of the release; failed deletes keep their reference."""
        deleted = await self.delete_assets(release)
        logger.info(f"Purged {len(deleted)} asset(s) of release {release.id}")
        if not deleted:
            return release
        return await self.store.clear_asset_urls(release.id, deleted)

    async def get_release(self, release_id: str, actor: Actor) -> ReleaseResponse:
        release = await self.store.get_release(release_id)
        await self.resolver.ensure_in_scope(actor, release.label_id)
        return release

    async def delete_release(self, release_id: str, actor: Actor) -> None:
        """Hard delete: purge every asset and remove the release record."""
        release = await self.store.get_release(release_id)
        if actor.is_staff:
            if not actor.permissions.can_delete_releases:
                raise AuthorizationError("You are not authorized to delete releases")
        else:
            await self.resolver.ensure_in_scope(actor, release.label_id)
            if release.status not in EDITABLE_STATUSES:
                raise AuthorizationError(f"A release in {release.status.value} can no longer be deleted by its label")

        try:
            await self.delete_assets(release)
            await self.store.delete_release(release_id)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        logger.info(f"Release {release_id} ('{release.title}') deleted by {actor.id}")

    @staticmethod
    def _newest_first(releases: List[ReleaseResponse]) -> List[ReleaseResponse]:
        return sorted(releases, key=lambda r: r.updated_at, reverse=True)

    async def incoming_queue(self, actor: Actor) -> List[ReleaseResponse]:
        """Staff review queue: everything submitted except releases awaiting label corrections."""
        if not actor.is_staff:
            raise AuthorizationError("Only platform staff can view the incoming queue")
        statuses = [status for status in ReleaseStatus if status not in (ReleaseStatus.DRAFT, ReleaseStatus.NEEDS_INFO)]
        return self._newest_first(await self.store.list_releases(statuses=statuses))

    async def correction_queue(self, actor: Actor) -> List[ReleaseResponse]:
        scope = await self.resolver.scope_label_ids(actor)
        return self._newest_first(await self.store.list_releases(label_ids=scope, statuses=[ReleaseStatus.NEEDS_INFO]))

    async def label_releases(self, actor: Actor) -> List[ReleaseResponse]:
        scope = await self.resolver.scope_label_ids(actor)
        return self._newest_first(await self.store.list_releases(label_ids=scope))
