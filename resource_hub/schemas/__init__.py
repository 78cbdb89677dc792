"""Pydantic schemas for API requests and responses."""

from resource_hub.schemas.admin import (
    AdminResourceItem,
    AdminUserResponse,
    ApprovalToggleResponse,
    BanToggleResponse,
)
from resource_hub.schemas.auth import (
    AuthResponse,
    MessageResponse,
    RegisterResponse,
    ResendVerificationRequest,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyEmailRequest,
)
from resource_hub.schemas.resource import (
    DownloadResponse,
    ResourceDetailResponse,
    ResourceListItem,
    ResourceResponse,
    ResourceUpdate,
    VersionCreatedResponse,
    VersionResponse,
    VisibilityToggleResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "RegisterResponse",
    "MessageResponse",
    "VerifyEmailRequest",
    "ResendVerificationRequest",
    "ResourceUpdate",
    "ResourceResponse",
    "ResourceListItem",
    "ResourceDetailResponse",
    "VersionResponse",
    "VersionCreatedResponse",
    "DownloadResponse",
    "VisibilityToggleResponse",
    "AdminResourceItem",
    "AdminUserResponse",
    "ApprovalToggleResponse",
    "BanToggleResponse",
]
