import enum
import uuid
from sqlalchemy import Column, String, ForeignKey, Enum

from labelhub.services.database import Base

class ArtistType(str, enum.Enum):
    SINGER = "Singer"
    COMPOSER = "Composer"
    LYRICIST = "Lyricist"
    PRODUCER = "Producer"
    REMIXER = "Remixer"
    DJ = "DJ"
    BAND = "Band"
    ORCHESTRA = "Orchestra"

class Artist(Base):
    __tablename__ = "artists"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)

    # Owning label, for authority and visibility. Releases reference artists by id only.
    label_id = Column(String(36), ForeignKey("labels.id"), nullable=False, index=True)
    type = Column(
        Enum(ArtistType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=ArtistType.SINGER,
    )

    # Streaming platform identifiers
    spotify_id = Column(String(64), nullable=True)
    apple_music_id = Column(String(64), nullable=True)
    instagram_url = Column(String(255), nullable=True)

    email = Column(String(255), nullable=True)
