import logging
from typing import List, Optional

from labelhub.core.exceptions import AuthorizationError, ValidationError
from labelhub.models.user import UserRole
from labelhub.schemas.artist import ArtistCreate, ArtistCreated, ArtistResponse, ArtistUpdate, LockState
from labelhub.schemas.user import Actor, UserCreate
from labelhub.services.entity_store import EntityStore
from labelhub.services.hierarchy import HierarchyResolver
from labelhub.services.integrity import IntegrityGuard
from labelhub.services.label_service import LabelService

logger = logging.getLogger(__name__)


class ArtistService:
    def __init__(self, store: EntityStore, resolver: Optional[HierarchyResolver] = None):
        self.store = store
        self.resolver = resolver or HierarchyResolver(store)
        self.guard = IntegrityGuard(store)
        self.labels = LabelService(store, resolver=self.resolver)

    async def _ensure_can_manage(self, actor: Actor, label_id: str) -> None:
        await self.resolver.ensure_in_scope(actor, label_id)
        if not actor.is_staff and not actor.permissions.can_manage_artists:
            raise AuthorizationError("You are not authorized to manage artists")

    async def list_artists(self, actor: Actor) -> List[ArtistResponse]:
        return await self.store.list_artists(await self.resolver.scope_label_ids(actor))

    async def get_artist(self, artist_id: str, actor: Actor) -> ArtistResponse:
        artist = await self.store.get_artist(artist_id)
        await self.resolver.ensure_in_scope(actor, artist.label_id)
        return artist

    async def lock_state(self, artist_id: str, actor: Actor) -> LockState:
        await self.get_artist(artist_id, actor)
        return await self.guard.lock_state(artist_id)

    async def create_artist(self, data: ArtistCreate, actor: Actor) -> ArtistCreated:
        await self.store.get_label(data.label_id)
        await self._ensure_can_manage(actor, data.label_id)
        await self.labels.ensure_artist_capacity(data.label_id)

        try:
            artist = await self.store.create_artist(data)
            user = None
            if data.email:
                user = await self.store.create_user(UserCreate(
                    name=artist.name,
                    email=data.email,
                    role=UserRole.ARTIST,
                    label_id=artist.label_id,
                    artist_id=artist.id,
                ))
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        logger.info(f"Artist {artist.id} ('{artist.name}') added to label {artist.label_id} by {actor.id}")
        return ArtistCreated(artist=artist, user=user)

    async def update_artist(self, artist_id: str, data: ArtistUpdate, actor: Actor) -> ArtistResponse:
        artist = await self.store.get_artist(artist_id)
        await self._ensure_can_manage(actor, artist.label_id)
        await self.guard.ensure_artist_unlocked(artist_id, name=f"Artist '{artist.name}'")

        changes = data.model_dump(exclude_unset=True)
        if "label_id" in changes and not changes["label_id"]:
            raise ValidationError("An artist must belong to a label")
        new_label_id = changes.get("label_id")
        if new_label_id and new_label_id != artist.label_id:
            await self.store.get_label(new_label_id)
            await self._ensure_can_manage(actor, new_label_id)
            await self.labels.ensure_artist_capacity(new_label_id)

        try:
            updated = await self.store.update_artist(artist_id, changes)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        return updated

    async def delete_artist(self, artist_id: str, actor: Actor) -> None:
        artist = await self.store.get_artist(artist_id)
        await self._ensure_can_manage(actor, artist.label_id)
        await self.guard.ensure_artist_unlocked(artist_id, name=f"Artist '{artist.name}'")

        try:
            await self.store.delete_artist(artist_id)
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise
        logger.info(f"Artist {artist_id} ('{artist.name}') removed by {actor.id}")
