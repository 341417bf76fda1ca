import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from labelhub.core.exceptions import NotFoundError, DuplicateError
from labelhub.models.artist import Artist
from labelhub.models.interaction_note import InteractionNote
from labelhub.models.label import Label
from labelhub.models.release import Release, ReleaseStatus
from labelhub.models.track import Track
from labelhub.models.user import User
from labelhub.schemas.artist import ArtistCreate, ArtistResponse
from labelhub.schemas.label import LabelResponse
from labelhub.schemas.release import ReleaseResponse, ReleaseWrite
from labelhub.schemas.user import UserCreate, UserResponse
from labelhub.services.database import utcnow

logger = logging.getLogger(__name__)


class EntityStore:
    """
    System of record for labels, users, artists and releases.

    Every read returns a pydantic copy, never the ORM row, so callers cannot
    mutate stored state behind the store's back. Writes flush but do not
    commit: the service running the operation commits once at the end.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()

    # Labels

    async def _label_row(self, label_id: str) -> Label:
        label = await self.db.get(Label, label_id)
        if not label:
            raise NotFoundError("Label", label_id)
        return label

    async def get_label(self, label_id: str) -> LabelResponse:
        return LabelResponse.model_validate(await self._label_row(label_id))

    async def list_labels(self, label_ids: Optional[Iterable[str]] = None) -> List[LabelResponse]:
        stmt = select(Label).order_by(Label.created_at, Label.id)
        if label_ids is not None:
            stmt = stmt.where(Label.id.in_(list(label_ids)))
        result = await self.db.execute(stmt)
        return [LabelResponse.model_validate(label) for label in result.scalars().all()]

    async def label_parents(self) -> Dict[str, Optional[str]]:
        """The label arena: every label id mapped to its parent id."""
        result = await self.db.execute(select(Label.id, Label.parent_label_id))
        return {label_id: parent_id for label_id, parent_id in result.all()}

    async def create_label(self, data: Dict[str, Any]) -> LabelResponse:
        label = Label(id=data.pop("id", None) or str(uuid.uuid4()), **data)
        self.db.add(label)
        await self.db.flush()
        logger.debug(f"Created label {label.id} ({label.name})")
        return LabelResponse.model_validate(label)

    async def update_label(self, label_id: str, changes: Dict[str, Any]) -> LabelResponse:
        label = await self._label_row(label_id)
        for field, value in changes.items():
            setattr(label, field, value)
        await self.db.flush()
        return LabelResponse.model_validate(label)

    async def delete_label(self, label_id: str) -> None:
        label = await self._label_row(label_id)
        await self.db.delete(label)
        await self.db.flush()

    # Users

    async def get_user(self, user_id: str) -> UserResponse:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return UserResponse.model_validate(user)

    async def find_user_by_email(self, email: str) -> Optional[UserResponse]:
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        user = result.scalar_one_or_none()
        return UserResponse.model_validate(user) if user else None

    async def create_user(self, data: UserCreate) -> UserResponse:
        if await self.find_user_by_email(data.email):
            raise DuplicateError("Email", data.email)
        user = User(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            role=data.role,
            designation=data.designation,
            label_id=data.label_id,
            artist_id=data.artist_id,
            permissions=data.permissions.model_dump(),
        )
        self.db.add(user)
        await self.db.flush()
        return UserResponse.model_validate(user)

    async def list_users(self, label_ids: Optional[Iterable[str]] = None) -> List[UserResponse]:
        stmt = select(User).order_by(User.name)
        if label_ids is not None:
            stmt = stmt.where(User.label_id.in_(list(label_ids)))
        result = await self.db.execute(stmt)
        return [UserResponse.model_validate(user) for user in result.scalars().all()]

    async def set_users_blocked(self, label_id: str, blocked: bool, reason: Optional[str] = None) -> int:
        result = await self.db.execute(select(User).where(User.label_id == label_id))
        users = result.scalars().all()
        for user in users:
            user.is_blocked = blocked
            user.block_reason = reason if blocked else None
        await self.db.flush()
        return len(users)

    async def delete_users_by_labels(self, label_ids: Iterable[str]) -> int:
        result = await self.db.execute(select(User).where(User.label_id.in_(list(label_ids))))
        users = result.scalars().all()
        for user in users:
            await self.db.delete(user)
        await self.db.flush()
        return len(users)

    # Artists

    async def _artist_row(self, artist_id: str) -> Artist:
        artist = await self.db.get(Artist, artist_id)
        if not artist:
            raise NotFoundError("Artist", artist_id)
        return artist

    async def get_artist(self, artist_id: str) -> ArtistResponse:
        return ArtistResponse.model_validate(await self._artist_row(artist_id))

    async def list_artists(self, label_ids: Optional[Iterable[str]] = None) -> List[ArtistResponse]:
        stmt = select(Artist).order_by(Artist.name, Artist.id)
        if label_ids is not None:
            stmt = stmt.where(Artist.label_id.in_(list(label_ids)))
        result = await self.db.execute(stmt)
        return [ArtistResponse.model_validate(artist) for artist in result.scalars().all()]

    async def count_artists(self, label_id: str) -> int:
        result = await self.db.execute(select(func.count(Artist.id)).where(Artist.label_id == label_id))
        return result.scalar_one()

    async def create_artist(self, data: ArtistCreate) -> ArtistResponse:
        artist = Artist(id=str(uuid.uuid4()), **data.model_dump())
        self.db.add(artist)
        await self.db.flush()
        return ArtistResponse.model_validate(artist)

    async def update_artist(self, artist_id: str, changes: Dict[str, Any]) -> ArtistResponse:
        artist = await self._artist_row(artist_id)
        for field, value in changes.items():
            setattr(artist, field, value)
        await self.db.flush()
        return ArtistResponse.model_validate(artist)

    async def delete_artist(self, artist_id: str) -> None:
        artist = await self._artist_row(artist_id)
        await self.db.delete(artist)
        await self.db.flush()

    async def delete_artists_by_labels(self, label_ids: Iterable[str]) -> int:
        result = await self.db.execute(select(Artist).where(Artist.label_id.in_(list(label_ids))))
        artists = result.scalars().all()
        for artist in artists:
            await self.db.delete(artist)
        await self.db.flush()
        return len(artists)

    # Releases

    async def _release_row(self, release_id: str) -> Release:
        # populate_existing so tracks and notes reflect the latest flush
        result = await self.db.execute(
            select(Release)
            .where(Release.id == release_id)
            .execution_options(populate_existing=True)
        )
        release = result.scalar_one_or_none()
        if not release:
            raise NotFoundError("Release", release_id)
        return release

    async def get_release(self, release_id: str) -> ReleaseResponse:
        return ReleaseResponse.model_validate(await self._release_row(release_id))

    async def list_releases(
        self,
        label_ids: Optional[Iterable[str]] = None,
        statuses: Optional[Iterable[ReleaseStatus]] = None,
    ) -> List[ReleaseResponse]:
        """All releases, oldest first; a full scan when no filter is given."""
        stmt = select(Release).order_by(Release.created_at, Release.id)
        if label_ids is not None:
            stmt = stmt.where(Release.label_id.in_(list(label_ids)))
        if statuses is not None:
            stmt = stmt.where(Release.status.in_(list(statuses)))
        result = await self.db.execute(stmt)
        return [ReleaseResponse.model_validate(release) for release in result.scalars().all()]

    def _apply_tracks(self, release: Release, tracks) -> None:
        existing = {track.id: track for track in release.tracks}
        ordered = []
        for data in tracks:
            track = existing.pop(data.id, None) if data.id else None
            if track is None:
                track = Track(id=data.id or str(uuid.uuid4()))
            for field, value in data.model_dump(exclude={"id"}).items():
                setattr(track, field, value)
            ordered.append(track)
        # Tracks left in `existing` become orphans and are deleted on flush
        release.tracks = ordered

    async def create_release(self, data: ReleaseWrite, status: ReleaseStatus) -> ReleaseResponse:
        now = utcnow()
        release = Release(
            id=data.id or str(uuid.uuid4()),
            status=status,
            created_at=now,
            updated_at=now,
            **data.model_dump(exclude={"id", "tracks"}),
        )
        release.tracks = []
        release.notes = []
        self._apply_tracks(release, data.tracks)
        self.db.add(release)
        await self.db.flush()
        logger.info(f"Stored new release {release.id} ('{release.title}') as {status.value}")
        return await self.get_release(release.id)

    async def replace_release(self, release_id: str, data: ReleaseWrite) -> ReleaseResponse:
        """Overwrite a release's metadata, artwork and track list; status and notes are kept."""
        release = await self._release_row(release_id)
        for field, value in data.model_dump(exclude={"id", "tracks"}).items():
            setattr(release, field, value)
        self._apply_tracks(release, data.tracks)
        release.updated_at = utcnow()
        await self.db.flush()
        return await self.get_release(release_id)

    async def set_release_status(self, release_id: str, status: ReleaseStatus) -> ReleaseResponse:
        release = await self._release_row(release_id)
        release.status = status
        release.updated_at = utcnow()
        await self.db.flush()
        return await self.get_release(release_id)

    async def add_note(self, release_id: str, author_name: str, author_role: str, message: str) -> ReleaseResponse:
        release = await self._release_row(release_id)
        release.notes.insert(0, InteractionNote(
            author_name=author_name,
            author_role=author_role,
            message=message,
            timestamp=utcnow(),
        ))
        await self.db.flush()
        return await self.get_release(release_id)

    async def clear_asset_urls(self, release_id: str, urls: Iterable[str]) -> ReleaseResponse:
        """Drop references to assets that no longer exist in storage."""
        urls = set(urls)
        release = await self._release_row(release_id)
        for track in release.tracks:
            if track.audio_url in urls:
                track.audio_url = None
                track.audio_file_name = None
        if release.artwork_url in urls:
            release.artwork_url = None
        await self.db.flush()
        return await self.get_release(release_id)

    async def delete_release(self, release_id: str) -> None:
        release = await self._release_row(release_id)
        await self.db.delete(release)
        await self.db.flush()

    async def delete_releases_by_labels(self, label_ids: Iterable[str]) -> int:
        result = await self.db.execute(select(Release).where(Release.label_id.in_(list(label_ids))))
        releases = result.scalars().all()
        for release in releases:
            await self.db.delete(release)
        await self.db.flush()
        return len(releases)

    # Search

    async def search(self, query: str, label_ids: Optional[Iterable[str]] = None, limit: int = 20):
        """Case-insensitive substring match on label and artist names, release titles and UPCs."""
        pattern = f"%{query.lower()}%"
        scope = list(label_ids) if label_ids is not None else None

        label_stmt = select(Label).where(func.lower(Label.name).like(pattern)).order_by(Label.name).limit(limit)
        artist_stmt = select(Artist).where(func.lower(Artist.name).like(pattern)).order_by(Artist.name).limit(limit)
        release_stmt = (
            select(Release)
            .where(func.lower(Release.title).like(pattern) | func.lower(Release.upc).like(pattern))
            .order_by(Release.title)
            .limit(limit)
        )
        if scope is not None:
            label_stmt = label_stmt.where(Label.id.in_(scope))
            artist_stmt = artist_stmt.where(Artist.label_id.in_(scope))
            release_stmt = release_stmt.where(Release.label_id.in_(scope))

        labels = (await self.db.execute(label_stmt)).scalars().all()
        artists = (await self.db.execute(artist_stmt)).scalars().all()
        releases = (await self.db.execute(release_stmt)).scalars().all()
        return (
            [LabelResponse.model_validate(label) for label in labels],
            [ArtistResponse.model_validate(artist) for artist in artists],
            [ReleaseResponse.model_validate(release) for release in releases],
        )
