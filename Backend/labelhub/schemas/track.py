from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

class TrackBase(BaseModel):
    track_number: int = Field(ge=1)
    disc_number: int = 1
    title: str
    version_title: Optional[str] = None
    isrc: Optional[str] = None
    duration: int = 0
    explicit: bool = False
    primary_artist_ids: List[str] = []
    featured_artist_ids: List[str] = []
    audio_file_name: Optional[str] = None

class TrackWrite(TrackBase):
    """Persisted form of a track: audio is either a committed URL or absent."""
    id: Optional[str] = None
    audio_url: Optional[str] = None

class TrackResponse(TrackBase):
    id: str
    audio_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
