import enum
import uuid
from sqlalchemy import String, ForeignKey, Boolean, JSON, Enum
from sqlalchemy.orm import Mapped, mapped_column

from labelhub.services.database import Base

class UserRole(str, enum.Enum):
    OWNER = "Owner"
    LABEL_ADMIN = "Label Admin"
    SUB_LABEL_ADMIN = "Sub-Label Admin"
    ARTIST = "Artist"
    EMPLOYEE = "Employee"

# Platform-side roles that review releases and see every label
STAFF_ROLES = frozenset({UserRole.OWNER, UserRole.EMPLOYEE})

class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32),
        nullable=False,
    )
    designation: Mapped[str | None] = mapped_column(String(120))

    label_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("labels.id"), index=True)
    artist_id: Mapped[str | None] = mapped_column(String(36))

    # Boolean flags, see schemas.user.UserPermissions
    permissions: Mapped[dict] = mapped_column(JSON, default=dict)

    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    block_reason: Mapped[str | None] = mapped_column(String(255))
