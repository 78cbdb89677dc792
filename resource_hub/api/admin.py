"""Admin moderation API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from resource_hub.api.dependencies import get_resource_service, require_admin
from resource_hub.api.resources import list_item_fields
from resource_hub.models.user import User
from resource_hub.schemas.admin import (
    AdminResourceItem,
    AdminUserResponse,
    ApprovalToggleResponse,
    BanToggleResponse,
)
from resource_hub.schemas.auth import MessageResponse
from resource_hub.schemas.resource import VisibilityToggleResponse
from resource_hub.services.resource_query import ResourceFilter
from resource_hub.services.resource_service import ResourceService

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/resources", response_model=list[AdminResourceItem])
async def list_all_resources(
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
    approved: Annotated[bool | None, Query()] = None,
    visible: Annotated[bool | None, Query()] = None,
    include_deleted: Annotated[bool, Query()] = False,
    search: Annotated[str | None, Query()] = None,
):
    """List every resource regardless of approval or visibility."""
    resources = service.list_resources(
        ResourceFilter(
            search=search,
            approved=approved,
            visible=visible,
            include_deleted=include_deleted,
        ),
        admin,
    )
    counts = service.version_counts([r.id for r in resources])
    return [
        AdminResourceItem(
            **list_item_fields(r, counts.get(r.id, 0)),
            deleted_at=r.deleted_at,
            owner_email=r.owner.email,
            owner_email_verified=r.owner.email_verified,
            owner_is_banned=r.owner.is_banned,
        )
        for r in resources
    ]


@router.patch("/resources/{resource_id}/approve", response_model=ApprovalToggleResponse)
async def toggle_approval(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
):
    """Approve or unapprove a resource."""
    result = service.toggle_approval(resource_id, admin)
    return ApprovalToggleResponse(is_approved=result.value, message=result.message)


@router.patch("/resources/{resource_id}/hide", response_model=VisibilityToggleResponse)
async def toggle_hidden(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
):
    """Hide or show any resource."""
    result = service.toggle_admin_visibility(resource_id, admin)
    return VisibilityToggleResponse(is_visible=result.value, message=result.message)


@router.delete("/resources/{resource_id}", response_model=MessageResponse)
async def delete_resource(
    resource_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
):
    """Soft-delete any resource."""
    service.soft_delete(resource_id, admin)
    return MessageResponse(message="Resource deleted successfully")


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
):
    """List all users with their resource counts."""
    return [
        AdminUserResponse.model_validate(summary.user).model_copy(
            update={"resource_count": summary.resource_count}
        )
        for summary in service.list_users(admin)
    ]


@router.patch("/users/{user_id}/ban", response_model=BanToggleResponse)
async def toggle_ban(
    user_id: int,
    service: Annotated[ResourceService, Depends(get_resource_service)],
    admin: Annotated[User, Depends(require_admin)],
):
    """Ban or unban a user. Administrators cannot be banned."""
    result = service.ban_user(admin, user_id)
    return BanToggleResponse(is_banned=result.value, message=result.message)
