"""Resource and version schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ResourceUpdate(BaseModel):
    """Partial update of a resource.

    Only fields present in the request body are applied. Sending ``category``
    as ``null`` or ``""`` clears it.
    """

    title: str | None = None
    description: str | None = None
    plugin_type: str | None = None
    category: str | None = None
    content: str | None = None


class VersionResponse(BaseModel):
    """One entry of a resource's version history."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    resource_id: int
    version: str
    changelog: str
    zip_url: str
    image_urls: list[str] = []
    file_size: str
    created_at: datetime


class ResourceResponse(BaseModel):
    """Resource response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    plugin_type: str
    category: str | None
    content: str
    current_version: str
    is_visible: bool
    is_approved: bool
    download_count: int
    created_at: datetime
    updated_at: datetime
    owner_id: int
    author: str


class ResourceListItem(ResourceResponse):
    """Resource in a listing, with its latest version."""

    latest_version: VersionResponse | None = None
    version_count: int = 0


class ResourceDetailResponse(ResourceResponse):
    """Full resource detail for one viewer."""

    versions: list[VersionResponse] = []
    can_edit: bool = False
    can_delete: bool = False


class VersionCreatedResponse(BaseModel):
    """Result of uploading a new version."""

    success: bool = True
    version: VersionResponse
    message: str = "New version created successfully"
    warnings: list[str] = []


class DownloadResponse(BaseModel):
    """Download tracking result. Always returned with HTTP 200."""

    success: bool
    message: str


class VisibilityToggleResponse(BaseModel):
    """New visibility after a toggle."""

    success: bool = True
    is_visible: bool
    message: str
