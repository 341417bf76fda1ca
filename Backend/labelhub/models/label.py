import enum
import uuid
import datetime
from sqlalchemy import String, ForeignKey, DateTime, Float, Integer, Enum
from sqlalchemy.orm import Mapped, mapped_column

from labelhub.services.database import Base, utcnow

class LabelStatus(str, enum.Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"

class Label(Base):
    __tablename__ = "labels"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Plain back-reference to the parent label; the tree itself is never materialized.
    parent_label_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("labels.id"), index=True)
    owner_id: Mapped[str | None] = mapped_column(String(36))

    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))
    country: Mapped[str | None] = mapped_column(String(120))
    tax_id: Mapped[str | None] = mapped_column(String(64))
    website: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(64))

    revenue_share: Mapped[float | None] = mapped_column(Float)
    # None or 0 means unlimited
    max_artists: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[LabelStatus] = mapped_column(
        Enum(LabelStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=16),
        default=LabelStatus.ACTIVE,
        nullable=False,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=utcnow)
