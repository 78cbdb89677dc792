"""Resource API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from resource_hub.api.dependencies import (
    get_current_user,
    get_optional_user,
    get_resource_service,
)
from resource_hub.models.resource import Resource
from resource_hub.models.user import User
from resource_hub.schemas.auth import MessageResponse
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
from resource_hub.services.asset_store import UploadedFile
from resource_hub.services.resource_query import ResourceFilter
from resource_hub.services.resource_service import (
    ResourceDraft,
    ResourceService,
    ResourceView,
    VersionDraft,
)

router = APIRouter(prefix="/api/v1/resources", tags=["resources"])


def resource_fields(resource: Resource) -> dict[str, Any]:
    """Flatten a resource and its owner's name into response fields."""
    fields = {
        name: getattr(resource, name)
        for name in ResourceResponse.model_fields
        if name != "author"
    }
    fields["author"] = resource.owner.username
    return fields


def list_item_fields(resource: Resource, version_count: int) -> dict[str, Any]:
    """Response fields for a listing entry."""
    latest = resource.versions[0] if resource.versions else None
    return {
        **resource_fields(resource),
        "latest_version": VersionResponse.model_validate(latest) if latest else None,
        "version_count": version_count,
    }


def build_detail(view: ResourceView) -> ResourceDetailResponse:
    return ResourceDetailResponse(
        **resource_fields(view.resource),
        versions=[VersionResponse.model_validate(v) for v in view.resource.versions],
        can_edit=view.can_edit,
        can_delete=view.can_delete,
    )


async def _read_upload(upload: UploadFile | None) -> UploadedFile | None:
    """Read a multipart upload into memory."""
    if upload is None or not upload.filename:
        return None
    return UploadedFile(filename=upload.filename, data=await upload.read())


async def _read_images(uploads: list[UploadFile] | None) -> list[UploadedFile]:
    images = []
    for upload in uploads or []:
        image = await _read_upload(upload)
        if image is not None:
            images.append(image)
    return images


@router.get("", response_model=list[ResourceListItem])
async def list_resources(
    service: Annotated[ResourceService, Depends(get_resource_service)],
    viewer: Annotated[User | None, Depends(get_optional_user)],
    plugin_type: Annotated[str | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
):
    """List public resources, plus the viewer's own."""
    resources = service.list_resources(
        ResourceFilter(plugin_type=plugin_type, category=category, search=search),
        viewer,
    )
    counts = service.version_counts([r.id for r in resources])
    return [ResourceListItem(**list_item_fields(r, counts.get(r.id, 0))) for r in resources]


@router.post("", response_model=ResourceDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    service: Annotated[ResourceService, Depends(get_resource_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    title: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    plugin_type: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    version: Annotated[str, Form()] = "",
    category: Annotated[str | None, Form()] = None,
    changelog: Annotated[str | None, Form()] = None,
    archive: Annotated[UploadFile | None, File(alias="zip")] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
):
    """Upload a new resource. It stays hidden from the public until approved."""
    draft = ResourceDraft(
        title=title,
        description=description,
        plugin_type=plugin_type,
        content=content,
        version=version,
        category=category,
        changelog=changelog,
    )
    resource = service.create_resource(
        current_user,
        draft,
        await _read_upload(archive),
        await _read_images(images),
    )
    return build_detail(service.get_resource(resource.id, current_user))


@router.get("/{resource_id}", response_model=ResourceDetailResponse)
async def get_resource(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    viewer: Annotated[User | None, Depends(get_optional_user)],
):
    """Get a resource with its full version history."""
    return build_detail(service.get_resource(resource_id, viewer))


@router.put("/{resource_id}", response_model=ResourceDetailResponse)
async def update_resource(
    resource_id: int,
    data: ResourceUpdate,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Update resource fields. Only the fields sent are changed."""
    service.edit_resource(resource_id, current_user, data.model_dump(exclude_unset=True))
    return build_detail(service.get_resource(resource_id, current_user))


@router.delete("/{resource_id}", response_model=MessageResponse)
async def delete_resource(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Soft-delete a resource."""
    service.soft_delete(resource_id, current_user)
    return MessageResponse(message="Resource deleted successfully")


@router.patch("/{resource_id}/visibility", response_model=VisibilityToggleResponse)
async def toggle_visibility(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Hide or show one of your own resources."""
    result = service.toggle_owner_visibility(resource_id, current_user)
    return VisibilityToggleResponse(is_visible=result.value, message=result.message)


@router.get("/{resource_id}/versions", response_model=list[VersionResponse])
async def list_versions(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    viewer: Annotated[User | None, Depends(get_optional_user)],
):
    """Get version history, newest first."""
    return service.list_versions(resource_id, viewer)


@router.post(
    "/{resource_id}/versions",
    response_model=VersionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    version: Annotated[str, Form()] = "",
    changelog: Annotated[str | None, Form()] = None,
    archive: Annotated[UploadFile | None, File(alias="zip")] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
):
    """Upload a new version. Versions beyond the retention limit are pruned."""
    outcome = service.add_version(
        resource_id,
        current_user,
        VersionDraft(version=version, changelog=changelog),
        await _read_upload(archive),
        await _read_images(images),
    )
    return VersionCreatedResponse(
        version=VersionResponse.model_validate(outcome.version),
        warnings=outcome.warnings,
    )


@router.post("/{resource_id}/download", response_model=DownloadResponse)
async def track_download(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
):
    """Count a download. Failures are reported in the body, never as an error status."""
    if service.increment_download_count(resource_id):
        return DownloadResponse(success=True, message="Download tracked")
    return DownloadResponse(success=False, message="Failed to track download")
