from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional

from labelhub.models.user import UserRole, STAFF_ROLES

class UserPermissions(BaseModel):
    can_manage_artists: bool = False
    can_manage_releases: bool = False
    can_create_sub_labels: bool = False
    can_submit_albums: bool = True
    # Platform staff specific
    can_manage_employees: bool = False
    can_manage_network: bool = False
    can_view_financials: bool = False
    can_onboard_labels: bool = False
    can_delete_releases: bool = False

    @classmethod
    def all_granted(cls) -> "UserPermissions":
        return cls(**{name: True for name in cls.model_fields})

class UserBase(BaseModel):
    name: str
    email: EmailStr
    role: UserRole
    designation: Optional[str] = None
    label_id: Optional[str] = None
    artist_id: Optional[str] = None

class UserCreate(UserBase):
    permissions: UserPermissions = Field(default_factory=UserPermissions)

class UserResponse(UserBase):
    id: str
    permissions: UserPermissions
    is_blocked: bool = False
    block_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Actor(BaseModel):
    """The already-authenticated identity every mutating operation receives."""
    id: str
    name: str
    role: UserRole
    label_id: Optional[str] = None
    permissions: UserPermissions = Field(default_factory=UserPermissions)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    @classmethod
    def from_user(cls, user) -> "Actor":
        """Build an actor from a stored user; owners always hold every permission."""
        if user.role == UserRole.OWNER:
            permissions = UserPermissions.all_granted()
        elif isinstance(user.permissions, UserPermissions):
            permissions = user.permissions
        else:
            permissions = UserPermissions(**(user.permissions or {}))
        return cls(
            id=user.id,
            name=user.name,
            role=user.role,
            label_id=user.label_id,
            permissions=permissions,
        )
