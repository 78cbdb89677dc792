"""Admin moderation schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from resource_hub.schemas.resource import ResourceListItem


class AdminResourceItem(ResourceListItem):
    """Resource listing entry with moderation details."""

    deleted_at: datetime | None = None
    owner_email: str
    owner_email_verified: bool
    owner_is_banned: bool


class ApprovalToggleResponse(BaseModel):
    """New approval state after a toggle."""

    success: bool = True
    is_approved: bool
    message: str


class BanToggleResponse(BaseModel):
    """New ban state after a toggle."""

    success: bool = True
    is_banned: bool
    message: str


class AdminUserResponse(BaseModel):
    """User entry in the admin user list."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    email_verified: bool
    is_banned: bool
    created_at: datetime
    updated_at: datetime
    resource_count: int = 0
