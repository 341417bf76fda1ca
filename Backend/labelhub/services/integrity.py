import logging
from typing import List, Optional

from labelhub.core.exceptions import IntegrityLockError
from labelhub.models.release import PROTECTED_STATUSES
from labelhub.schemas.artist import LockState
from labelhub.schemas.release import ReleaseResponse
from labelhub.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


def _first_locking_release(artist_id: str, releases: List[ReleaseResponse]) -> Optional[ReleaseResponse]:
    return next((release for release in releases if artist_id in release.artist_ids()), None)


class IntegrityGuard:
    """Blocks artist and label mutations while an active release references them."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def _protected_releases(self) -> List[ReleaseResponse]:
        # Oldest first, so the reported release is deterministic when several match
        return await self.store.list_releases(statuses=PROTECTED_STATUSES)

    async def lock_state(self, artist_id: str) -> LockState:
        release = _first_locking_release(artist_id, await self._protected_releases())
        if release is None:
            return LockState(locked=False)
        return LockState(
            locked=True,
            release_id=release.id,
            release_title=release.title,
            status=release.status,
        )

    async def ensure_artist_unlocked(self, artist_id: str, name: str = "Artist") -> None:
        state = await self.lock_state(artist_id)
        if state.locked:
            logger.info(f"Artist {artist_id} is locked by release {state.release_id} ({state.status.value})")
            raise IntegrityLockError(name, state.release_title, state.status.value)

    async def ensure_label_unlocked(self, label_id: str) -> None:
        """Every artist in the label's own roster must be unlocked."""
        artists = await self.store.list_artists([label_id])
        if not artists:
            return
        releases = await self._protected_releases()
        for artist in artists:
            release = _first_locking_release(artist.id, releases)
            if release is not None:
                logger.info(f"Label {label_id} is locked: artist {artist.id} is on release {release.id}")
                raise IntegrityLockError(f"Artist '{artist.name}'", release.title, release.status.value)
