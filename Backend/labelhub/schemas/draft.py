import uuid
from pydantic import BaseModel, Field
from typing import Optional, List

from labelhub.models.release import ReleaseStatus
from .asset import AssetRef, EmptyAsset, StagedAsset, asset_from_url
from .release import ReleaseBase, ReleaseResponse

class TrackDraft(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    track_number: int = Field(ge=1)
    disc_number: int = 1
    title: str = ""
    version_title: Optional[str] = None
    isrc: Optional[str] = None
    duration: int = 0
    explicit: bool = False
    primary_artist_ids: List[str] = []
    featured_artist_ids: List[str] = []
    audio_file_name: Optional[str] = None
    audio: AssetRef = Field(default_factory=EmptyAsset)

class ReleaseDraft(ReleaseBase):
    """An in-progress release being edited before it is committed to the store."""
    id: Optional[str] = None
    title: str = ""
    # None until the draft has been committed once
    status: Optional[ReleaseStatus] = None
    tracks: List[TrackDraft] = []
    artwork: AssetRef = Field(default_factory=EmptyAsset)

    @classmethod
    def from_release(cls, release: ReleaseResponse) -> "ReleaseDraft":
        data = release.model_dump(
            include=set(ReleaseBase.model_fields) | {"id", "status"},
        )
        tracks = [
            TrackDraft(
                **track.model_dump(exclude={"audio_url"}),
                audio=asset_from_url(track.audio_url),
            )
            for track in release.tracks
        ]
        return cls(**data, tracks=tracks, artwork=asset_from_url(release.artwork_url))

    def has_staged_assets(self) -> bool:
        if isinstance(self.artwork, StagedAsset):
            return True
        return any(isinstance(track.audio, StagedAsset) for track in self.tracks)
