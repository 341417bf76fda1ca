from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

from labelhub.models.label import LabelStatus
from labelhub.schemas.user import UserPermissions, UserResponse

class LabelBase(BaseModel):
    name: str
    parent_label_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    revenue_share: Optional[float] = Field(default=None, ge=0, le=100)
    max_artists: Optional[int] = Field(default=None, ge=0)

class LabelCreate(LabelBase):
    # Optional admin account created alongside the label
    admin_name: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    admin_permissions: UserPermissions = Field(default_factory=UserPermissions)

class LabelUpdate(BaseModel):
    name: Optional[str] = None
    parent_label_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    revenue_share: Optional[float] = Field(default=None, ge=0, le=100)
    max_artists: Optional[int] = Field(default=None, ge=0)

class LabelStatusUpdate(BaseModel):
    status: LabelStatus
    reason: Optional[str] = None

class LabelResponse(LabelBase):
    id: str
    owner_id: Optional[str] = None
    status: LabelStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LabelOnboarded(BaseModel):
    label: LabelResponse
    admin: Optional[UserResponse] = None
