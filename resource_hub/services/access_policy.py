"""Visibility and permission rules for resources.

A viewer is a ``User`` or ``None`` for anonymous visitors. Deleted resources
are filtered out by the caller before these rules apply.
"""

from resource_hub.models.enums import UserRole
from resource_hub.models.resource import Resource
from resource_hub.models.user import User


def is_admin(viewer: User | None) -> bool:
    """Check if the viewer is an administrator."""
    return viewer is not None and viewer.role == UserRole.ADMIN


def is_owner(resource: Resource, viewer: User | None) -> bool:
    """Check if the viewer owns the resource."""
    return viewer is not None and viewer.id == resource.owner_id


def is_public(resource: Resource) -> bool:
    """Approved, visible and not deleted."""
    return bool(resource.is_approved and resource.is_visible and resource.deleted_at is None)


def can_view(resource: Resource, viewer: User | None) -> bool:
    return is_public(resource) or is_owner(resource, viewer) or is_admin(viewer)


def can_edit(resource: Resource, viewer: User | None) -> bool:
    return is_owner(resource, viewer) or is_admin(viewer)


def can_delete(resource: Resource, viewer: User | None) -> bool:
    return is_owner(resource, viewer) or is_admin(viewer)
