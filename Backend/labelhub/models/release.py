import enum
import uuid
from sqlalchemy import Column, String, Integer, ForeignKey, Boolean, DateTime, Text, JSON, Enum
from sqlalchemy.orm import relationship

from labelhub.services.database import Base, utcnow

class ReleaseStatus(str, enum.Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    NEEDS_INFO = "Needs Info"
    REJECTED = "Rejected"
    APPROVED = "Approved"
    PROCESSED = "Processed"
    PUBLISHED = "Published"
    TAKEDOWN = "Takedown"
    CANCELLED = "Cancelled"

# Statuses in which every referenced artist is frozen
PROTECTED_STATUSES = frozenset({
    ReleaseStatus.PENDING,
    ReleaseStatus.NEEDS_INFO,
    ReleaseStatus.APPROVED,
    ReleaseStatus.PROCESSED,
    ReleaseStatus.PUBLISHED,
})

class ReleaseType(str, enum.Enum):
    SINGLE = "Single"
    EP = "EP"
    ALBUM = "Album"
    COMPILATION = "Compilation"
    SOUNDTRACK = "Soundtrack"

class Release(Base):
    __tablename__ = "releases"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    version_title = Column(String(255), nullable=True)
    release_type = Column(
        Enum(ReleaseType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=ReleaseType.SINGLE,
    )

    label_id = Column(String(36), ForeignKey("labels.id"), nullable=True, index=True)
    primary_artist_ids = Column(JSON, nullable=False, default=list)
    featured_artist_ids = Column(JSON, nullable=False, default=list)

    upc = Column(String(32), nullable=True)
    catalogue_number = Column(String(64), nullable=True)
    release_date = Column(String(32), nullable=True)
    p_line = Column(String(255), nullable=True)
    c_line = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    explicit = Column(Boolean, nullable=False, default=False)
    genre = Column(String(64), nullable=True)
    language = Column(String(64), nullable=True)

    # Only committed URLs are ever persisted here
    artwork_url = Column(String(1024), nullable=True)
    artwork_file_name = Column(String(255), nullable=True)

    status = Column(
        Enum(ReleaseStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        nullable=False,
        default=ReleaseStatus.DRAFT,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    # A release has many tracks, in track order
    tracks = relationship(
        "Track",
        back_populates="release",
        cascade="all, delete-orphan",
        order_by="Track.track_number",
        lazy="selectin",
    )
    # Audit trail, newest first
    notes = relationship(
        "InteractionNote",
        back_populates="release",
        cascade="all, delete-orphan",
        order_by="InteractionNote.id.desc()",
        lazy="selectin",
    )
