import logging
import uuid
from typing import List, Optional

from labelhub.core.config import settings
from labelhub.core.exceptions import AuthorizationError, ValidationError
from labelhub.models.label import LabelStatus
from labelhub.models.user import UserRole
from labelhub.schemas.label import LabelCreate, LabelOnboarded, LabelResponse, LabelUpdate
from labelhub.schemas.user import Actor, UserCreate
from labelhub.services.entity_store import EntityStore
from labelhub.services.hierarchy import HierarchyResolver
from labelhub.services.integrity import IntegrityGuard
from labelhub.services.lifecycle import ReleaseLifecycleController
from labelhub.services.storage import StorageService

logger = logging.getLogger(__name__)


class LabelService:
    def __init__(
        self,
        store: EntityStore,
        storage: Optional[StorageService] = None,
        resolver: Optional[HierarchyResolver] = None,
    ):
        self.store = store
        self.storage = storage
        self.resolver = resolver or HierarchyResolver(store)
        self.guard = IntegrityGuard(store)

    async def _ensure_can_manage(self, actor: Actor, label_id: str) -> None:
        """Staff network managers manage every label; label users manage the labels below them."""
        if actor.is_staff:
            if not (actor.is_owner or actor.permissions.can_manage_network):
                raise AuthorizationError("You are not authorized to manage the label network")
            return
        await self.resolver.ensure_in_scope(actor, label_id)

    async def list_labels(self, actor: Actor) -> List[LabelResponse]:
        return await self.store.list_labels(await self.resolver.scope_label_ids(actor))

    async def get_label(self, label_id: str, actor: Actor) -> LabelResponse:
        label = await self.store.get_label(label_id)
        await self.resolver.ensure_in_scope(actor, label_id)
        return label

    async def sub_labels(self, label_id: str, actor: Actor) -> List[LabelResponse]:
        await self.resolver.ensure_in_scope(actor, label_id)
        return await self.store.list_labels(await self.resolver.descendant_label_ids(label_id))

    async def create_label(self, data: LabelCreate, actor: Actor) -> LabelOnboarded:
        """Onboard a label, optionally together with its admin account."""
        if data.parent_label_id is None:
            if not (actor.is_owner or (actor.is_staff and actor.permissions.can_onboard_labels)):
                raise AuthorizationError("Only the platform can onboard top-level labels")
        else:
            if actor.is_staff:
                if not (actor.is_owner or actor.permissions.can_onboard_labels or actor.permissions.can_manage_network):
                    raise AuthorizationError("You are not authorized to onboard labels")
            else:
                if not actor.permissions.can_create_sub_labels:
                    raise AuthorizationError("You are not authorized to create sub-labels")
                await self.resolver.ensure_in_scope(actor, data.parent_label_id)

        label_id = str(uuid.uuid4())
        await self.resolver.ensure_acyclic(label_id, data.parent_label_id)

        fields = data.model_dump(exclude={"admin_name", "admin_email", "admin_permissions"})
        if fields["max_artists"] is None:
            fields["max_artists"] = settings.DEFAULT_MAX_ARTISTS

        admin = None
        try:
            label = await self.store.create_label({**fields, "id": label_id, "status": LabelStatus.ACTIVE})
            if data.admin_email:
                admin = await self.store.create_user(UserCreate(
                    name=data.admin_name or data.name,
                    email=data.admin_email,
                    role=UserRole.SUB_LABEL_ADMIN if data.parent_label_id else UserRole.LABEL_ADMIN,
                    label_id=label_id,
                    permissions=data.admin_permissions,
                ))
                label = await self.store.update_label(label_id, {"owner_id": admin.id})
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise

        self.resolver.invalidate()
        logger.info(f"Label {label.id} ('{label.name}') onboarded under {data.parent_label_id or 'the platform'} by {actor.id}")
        return LabelOnboarded(label=label, admin=admin)

    async def update_label(self, label_id: str, data: LabelUpdate, actor: Actor) -> LabelResponse:
        await self.store.get_label(label_id)
        await self._ensure_can_manage(actor, label_id)
        changes = data.model_dump(exclude_unset=True)

        if "parent_label_id" in changes:
            new_parent = changes["parent_label_id"]
            if new_parent is None and not actor.is_staff:
                raise AuthorizationError("Only the platform can promote a label to the top level")
            if new_parent is not None:
                await self.resolver.ensure_in_scope(actor, new_parent)
            await self.resolver.ensure_acyclic(label_id, new_parent)
        if actor.label_id == label_id and "max_artists" in changes and not actor.is_staff:
            raise AuthorizationError("A label cannot change its own artist cap")

        try:
            label = await self.store.update_label(label_id, changes)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        self.resolver.invalidate()
        return label

    async def set_label_status(self, label_id: str, status: LabelStatus, actor: Actor, reason: Optional[str] = None) -> LabelResponse:
        """Suspend or restore a label; its users are blocked while it is suspended."""
        await self.store.get_label(label_id)
        await self._ensure_can_manage(actor, label_id)
        if actor.label_id == label_id:
            raise AuthorizationError("A label cannot change its own access status")

        blocked = status == LabelStatus.SUSPENDED
        try:
            label = await self.store.update_label(label_id, {"status": status})
            count = await self.store.set_users_blocked(label_id, blocked, reason)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        logger.info(f"Label {label_id} set to {status.value}; {count} user(s) {'blocked' if blocked else 'unblocked'}")
        return label

    async def delete_label(self, label_id: str, actor: Actor) -> None:
        """
        Remove a label with its whole subtree: sub-labels, users, artists and
        releases. Refused if any artist anywhere in the subtree is locked;
        the label's own roster is checked first. Stored assets of the removed
        releases are deleted on a best-effort basis.
        """
        if self.storage is None:
            raise RuntimeError("Deleting a label requires a storage service")
        await self.store.get_label(label_id)
        await self._ensure_can_manage(actor, label_id)
        if actor.label_id == label_id:
            raise AuthorizationError("A label cannot delete itself")

        await self.guard.ensure_label_unlocked(label_id)
        descendants = await self.resolver.descendant_label_ids(label_id)
        for descendant_id in descendants:
            await self.guard.ensure_label_unlocked(descendant_id)

        subtree = {label_id} | descendants
        lifecycle = ReleaseLifecycleController(self.store, self.storage, self.resolver)
        try:
            for release in await self.store.list_releases(subtree):
                await lifecycle.delete_assets(release)
            releases = await self.store.delete_releases_by_labels(subtree)
            artists = await self.store.delete_artists_by_labels(subtree)
            users = await self.store.delete_users_by_labels(subtree)
            for doomed in await self._deepest_first(subtree):
                await self.store.delete_label(doomed)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        self.resolver.invalidate()
        logger.info(
            f"Label {label_id} removed by {actor.id}: {len(subtree)} label(s), "
            f"{artists} artist(s), {users} user(s), {releases} release(s)"
        )

    async def _deepest_first(self, label_ids) -> List[str]:
        depth = {label_id: len(await self.resolver.ancestor_ids(label_id)) for label_id in label_ids}
        return sorted(label_ids, key=lambda label_id: depth[label_id], reverse=True)

    async def ensure_artist_capacity(self, label_id: str) -> None:
        label = await self.store.get_label(label_id)
        if label.status == LabelStatus.SUSPENDED:
            raise ValidationError(f"Label '{label.name}' is suspended")
        if label.max_artists:
            count = await self.store.count_artists(label_id)
            if count >= label.max_artists:
                raise ValidationError(f"Label '{label.name}' has reached its limit of {label.max_artists} artists")
