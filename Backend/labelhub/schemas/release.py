from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

from labelhub.models.release import ReleaseStatus, ReleaseType
from .track import TrackResponse, TrackWrite

class NoteResponse(BaseModel):
    id: int
    author_name: str
    author_role: str
    message: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)

class ReleaseBase(BaseModel):
    title: str
    version_title: Optional[str] = None
    release_type: ReleaseType = ReleaseType.SINGLE
    label_id: Optional[str] = None
    primary_artist_ids: List[str] = []
    featured_artist_ids: List[str] = []
    upc: Optional[str] = None
    catalogue_number: Optional[str] = None
    release_date: Optional[str] = None
    p_line: Optional[str] = None
    c_line: Optional[str] = None
    description: Optional[str] = None
    explicit: bool = False
    genre: Optional[str] = None
    language: Optional[str] = None
    artwork_file_name: Optional[str] = None

class ReleaseWrite(ReleaseBase):
    """Everything the store persists for a release apart from its status and notes."""
    id: Optional[str] = None
    artwork_url: Optional[str] = None
    tracks: List[TrackWrite] = []

class ReleaseResponse(ReleaseBase):
    id: str
    artwork_url: Optional[str] = None
    status: ReleaseStatus
    tracks: List[TrackResponse] = []
    notes: List[NoteResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def artist_ids(self) -> set[str]:
        """Every artist referenced at release level or on any track."""
        ids = set(self.primary_artist_ids) | set(self.featured_artist_ids)
        for track in self.tracks:
            ids.update(track.primary_artist_ids)
            ids.update(track.featured_artist_ids)
        return ids

    def asset_urls(self) -> List[str]:
        urls = [track.audio_url for track in self.tracks if track.audio_url]
        if self.artwork_url:
            urls.append(self.artwork_url)
        return urls

class TransitionRequest(BaseModel):
    status: ReleaseStatus
    message: Optional[str] = None
