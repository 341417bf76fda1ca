from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional

from labelhub.models.artist import ArtistType
from labelhub.models.release import ReleaseStatus
from labelhub.schemas.user import UserResponse

class ArtistBase(BaseModel):
    name: str
    label_id: str
    type: ArtistType = ArtistType.SINGER
    spotify_id: Optional[str] = None
    apple_music_id: Optional[str] = None
    instagram_url: Optional[str] = None
    email: Optional[EmailStr] = None

class ArtistCreate(ArtistBase):
    pass

class ArtistUpdate(BaseModel):
    name: Optional[str] = None
    label_id: Optional[str] = None
    type: Optional[ArtistType] = None
    spotify_id: Optional[str] = None
    apple_music_id: Optional[str] = None
    instagram_url: Optional[str] = None
    email: Optional[EmailStr] = None

class ArtistResponse(ArtistBase):
    id: str

    model_config = ConfigDict(from_attributes=True)

class ArtistCreated(BaseModel):
    artist: ArtistResponse
    user: Optional[UserResponse] = None

class LockState(BaseModel):
    """Whether an artist is frozen by a release in a protected status."""
    locked: bool
    release_id: Optional[str] = None
    release_title: Optional[str] = None
    status: Optional[ReleaseStatus] = None
