import logging
import re
import uuid
from pathlib import Path
from typing import Callable, Optional

from mutagen import MutagenError
from mutagen.wave import WAVE

from labelhub.core.exceptions import LabelHubException, UpstreamError, ValidationError
from labelhub.models.release import ReleaseStatus
from labelhub.schemas.asset import EmptyAsset, StagedAsset, StagedFile, asset_from_url, asset_url
from labelhub.schemas.draft import ReleaseDraft, TrackDraft
from labelhub.schemas.release import ReleaseBase, ReleaseResponse, ReleaseWrite
from labelhub.schemas.track import TrackWrite
from labelhub.schemas.user import Actor
from labelhub.services.entity_store import EntityStore
from labelhub.services.lifecycle import EDITABLE_STATUSES, ReleaseLifecycleController, ensure_submittable
from labelhub.services.storage import ProgressCallback, StorageService

logger = logging.getLogger(__name__)

# Share of overall progress taken by the artwork upload; tracks split the rest
ARTWORK_PROGRESS_SHARE = 20


def sanitize_filename(name: str) -> str:
    """Lower-case, trim and collapse every run of characters outside [a-z0-9] into one underscore."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower().strip())


class _MonotonicProgress:
    """Forwards overall progress, never letting the reported value go backwards."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self.callback = callback
        self.value = 0

    def __call__(self, value: float) -> None:
        self.value = max(self.value, min(100, round(value)))
        if self.callback:
            self.callback(self.value)


class AssetStagingPipeline:
    """
    Builds one release draft: stages artwork and audio masters locally, then
    uploads them and commits the finalized release in a single step.

    Nothing is written to the store until every staged file has been
    uploaded, so a failed or cancelled commit leaves the draft exactly as it
    was and can simply be retried. Upload names are deterministic, so a retry
    overwrites whatever the failed attempt already sent.
    """

    def __init__(
        self,
        draft: ReleaseDraft,
        store: EntityStore,
        storage: StorageService,
        lifecycle: Optional[ReleaseLifecycleController] = None,
    ):
        self.draft = draft
        self.store = store
        self.storage = storage
        self.lifecycle = lifecycle or ReleaseLifecycleController(store, storage)

    @classmethod
    async def for_release(cls, release_id: str, actor: Actor, store: EntityStore, storage: StorageService) -> "AssetStagingPipeline":
        """Open an existing release for editing."""
        lifecycle = ReleaseLifecycleController(store, storage)
        release = await lifecycle.get_release(release_id, actor)
        return cls(ReleaseDraft.from_release(release), store, storage, lifecycle)

    # Tracks

    def add_track(self) -> TrackDraft:
        track = TrackDraft(track_number=len(self.draft.tracks) + 1)
        self.draft.tracks.append(track)
        return track

    def _track(self, track_index: int) -> TrackDraft:
        if not 0 <= track_index < len(self.draft.tracks):
            raise ValidationError(f"No track at position {track_index + 1}")
        return self.draft.tracks[track_index]

    def remove_track(self, track_index: int) -> None:
        self._track(track_index)
        del self.draft.tracks[track_index]
        self._renumber()

    def _renumber(self) -> None:
        """Track numbers follow list position: dense and 1-based."""
        for number, track in enumerate(self.draft.tracks, start=1):
            track.track_number = number

    # Staging

    def stage_artwork(self, file: StagedFile) -> None:
        if not (file.content_type or "").startswith("image/"):
            raise ValidationError("JPEG or PNG cover art required.")
        self.draft.artwork = StagedAsset(file=file)
        self.draft.artwork_file_name = file.filename

    def stage_audio(self, file: StagedFile, track_index: int) -> TrackDraft:
        track = self._track(track_index)
        if not file.filename.lower().endswith(".wav"):
            raise ValidationError("High-fidelity WAV masters only.")
        try:
            duration = round(WAVE(file.path).info.length)
        except (MutagenError, OSError, ValueError) as e:
            raise ValidationError(f"Error processing audio: {e}")

        track.duration = int(duration)
        track.audio_file_name = file.filename
        track.audio = StagedAsset(file=file)
        if not track.title:
            track.title = Path(file.filename).stem
        return track

    # Commit

    def _ensure_complete(self) -> None:
        draft = self.draft
        if not draft.primary_artist_ids:
            raise ValidationError("At least one primary artist is mandatory for submission.")
        if isinstance(draft.artwork, EmptyAsset):
            raise ValidationError("Cover art is mandatory for submission.")
        if not draft.tracks:
            raise ValidationError("At least one track is mandatory for submission.")
        if any(isinstance(track.audio, EmptyAsset) for track in draft.tracks):
            raise ValidationError("All tracks must have masters for submission.")

    async def _upload(self, file: StagedFile, path_prefix: str, filename: str, on_progress: ProgressCallback) -> str:
        try:
            return await self.storage.upload(file, path_prefix, filename, on_progress)
        except LabelHubException:
            raise
        except Exception as e:
            raise UpstreamError(f"Upload failed: {e}", cause=e)

    async def _check_commit(self, actor: Actor, submit: bool) -> Optional[ReleaseResponse]:
        draft = self.draft
        if not draft.title.strip():
            raise ValidationError("Title is mandatory.")
        if not draft.label_id:
            raise ValidationError("Target label is mandatory.")
        await self.lifecycle.resolver.ensure_in_scope(actor, draft.label_id)

        existing = None
        if draft.status is not None:
            existing = await self.store.get_release(draft.id)
            await self.lifecycle.resolver.ensure_in_scope(actor, existing.label_id)
            if existing.status not in EDITABLE_STATUSES:
                raise ValidationError(f"A release in {existing.status.value} can no longer be edited")
            if submit:
                await self.lifecycle.check_transition(existing, ReleaseStatus.PENDING, actor)
        else:
            await self.lifecycle.initial_status(actor, draft.label_id, submit)

        if submit:
            self._ensure_complete()
        return existing

    async def commit(
        self,
        actor: Actor,
        submit: bool = False,
        message: Optional[str] = None,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> ReleaseResponse:
        """
        Upload every staged asset and persist the release.

        A new release starts as Pending when submitted and Draft otherwise;
        an existing Draft or Needs Info release moves to Pending on submit
        and keeps its status on a plain save.
        """
        draft = self.draft
        existing = await self._check_commit(actor, submit)
        # The id is fixed before the first upload so every retry writes to the same prefix
        if draft.id is None:
            draft.id = str(uuid.uuid4())
        release_id = draft.id
        self._renumber()
        progress = _MonotonicProgress(on_progress)

        # 1. Artwork occupies the first 20% of progress
        safe_title = sanitize_filename(draft.title or "untitled_release")
        artwork_url = asset_url(draft.artwork)
        artwork_file_name = draft.artwork_file_name
        if isinstance(draft.artwork, StagedAsset):
            artwork_file_name = f"{safe_title}_cover.{draft.artwork.file.extension or 'jpg'}"
            logger.info(f"Uploading artwork for release {release_id} as {artwork_file_name}")
            artwork_url = await self._upload(
                draft.artwork.file,
                f"releases/{release_id}/artwork",
                artwork_file_name,
                lambda p: progress(p * ARTWORK_PROGRESS_SHARE / 100),
            )
        progress(ARTWORK_PROGRESS_SHARE)

        # 2. Each track gets an equal band of the remaining 80%
        tracks = []
        weight = (100 - ARTWORK_PROGRESS_SHARE) / len(draft.tracks) if draft.tracks else 0
        for index, track in enumerate(draft.tracks):
            audio_url = asset_url(track.audio)
            audio_file_name = track.audio_file_name
            if isinstance(track.audio, StagedAsset):
                audio_file_name = f"{sanitize_filename(track.title or f'track_{track.track_number}')}.wav"
                base = ARTWORK_PROGRESS_SHARE + index * weight
                logger.info(f"Uploading track {track.track_number} of release {release_id} as {audio_file_name}")
                audio_url = await self._upload(
                    track.audio.file,
                    f"releases/{release_id}/audio/{track.id}",
                    audio_file_name,
                    lambda p, base=base: progress(base + p * weight / 100),
                )
            tracks.append(TrackWrite(
                **track.model_dump(exclude={"audio", "audio_file_name"}),
                audio_url=audio_url,
                audio_file_name=audio_file_name,
            ))

        # 3. Every upload succeeded: persist the finalized release in one transaction
        data = draft.model_dump(include=set(ReleaseBase.model_fields))
        data["artwork_file_name"] = artwork_file_name
        payload = ReleaseWrite(**data, id=release_id, artwork_url=artwork_url, tracks=tracks)
        try:
            if existing is None:
                status = await self.lifecycle.initial_status(actor, draft.label_id, submit)
                if submit:
                    ensure_submittable(payload)
                release = await self.store.create_release(payload, status)
                if message and message.strip():
                    release = await self.store.add_note(release.id, actor.name, actor.role.value, message.strip())
            else:
                release = await self.store.replace_release(release_id, payload)
                if submit:
                    release = await self.lifecycle.apply_transition(release_id, ReleaseStatus.PENDING, actor, message)
                elif message and message.strip():
                    release = await self.store.add_note(release_id, actor.name, actor.role.value, message.strip())
            await self.store.commit()
        except BaseException:
            await self.store.rollback()
            raise

        # 4. Only now does the draft stop pointing at local files
        progress(100)
        self._adopt(release)
        logger.info(f"Committed release {release.id} ('{release.title}') as {release.status.value}")
        return release

    def _adopt(self, release: ReleaseResponse) -> None:
        draft = self.draft
        draft.id = release.id
        draft.status = release.status
        draft.artwork = asset_from_url(release.artwork_url)
        draft.artwork_file_name = release.artwork_file_name
        committed = {track.id: track for track in release.tracks}
        for track in draft.tracks:
            stored = committed.get(track.id)
            if stored is not None:
                track.audio = asset_from_url(stored.audio_url)
                track.audio_file_name = stored.audio_file_name
