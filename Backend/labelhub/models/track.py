import uuid
from sqlalchemy import Column, String, Integer, ForeignKey, Boolean, JSON
from sqlalchemy.orm import relationship
from labelhub.services.database import Base

class Track(Base):
    __tablename__ = "tracks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    track_number = Column(Integer, nullable=False)
    disc_number = Column(Integer, nullable=False, default=1)
    title = Column(String(255), nullable=False)
    version_title = Column(String(255), nullable=True)
    isrc = Column(String(32), nullable=True)
    duration = Column(Integer, nullable=False, default=0)
    explicit = Column(Boolean, nullable=False, default=False)

    primary_artist_ids = Column(JSON, nullable=False, default=list)
    featured_artist_ids = Column(JSON, nullable=False, default=list)

    audio_file_name = Column(String(255), nullable=True)
    audio_url = Column(String(1024), nullable=True)

    # Link to its parent release
    release_id = Column(String(36), ForeignKey("releases.id"), nullable=False, index=True)
    release = relationship("Release", back_populates="tracks")
