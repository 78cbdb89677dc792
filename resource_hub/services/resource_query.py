"""Typed filters for resource listings."""

from dataclasses import dataclass

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from resource_hub.models.resource import Resource
from resource_hub.models.user import User
from resource_hub.services.access_policy import is_admin

# Sentinel used by the UI filter dropdowns
ALL = "All"


@dataclass
class ResourceFilter:
    """Listing filters.

    ``approved``, ``visible`` and ``include_deleted`` only take effect for
    admins; everyone else is scoped by the visibility rules. ``owner_scope``
    narrows the listing to one owner's resources.
    """

    plugin_type: str | None = None
    category: str | None = None
    search: str | None = None
    approved: bool | None = None
    visible: bool | None = None
    include_deleted: bool = False
    owner_scope: int | None = None


def _public_clause():
    return and_(Resource.is_approved.is_(True), Resource.is_visible.is_(True))


def build_resource_query(db: Session, filters: ResourceFilter, viewer: User | None) -> Query:
    """Build the listing query for ``viewer``, newest first."""
    query = db.query(Resource).options(
        joinedload(Resource.owner), selectinload(Resource.versions)
    )

    if is_admin(viewer):
        if filters.approved is not None:
            query = query.filter(Resource.is_approved.is_(filters.approved))
        if filters.visible is not None:
            query = query.filter(Resource.is_visible.is_(filters.visible))
        if not filters.include_deleted:
            query = query.filter(Resource.deleted_at.is_(None))
    else:
        query = query.filter(Resource.deleted_at.is_(None))
        if viewer is not None:
            # Public resources plus the viewer's own, whatever their state
            query = query.filter(or_(_public_clause(), Resource.owner_id == viewer.id))
        else:
            query = query.filter(_public_clause())

    if filters.owner_scope is not None:
        query = query.filter(Resource.owner_id == filters.owner_scope)

    if filters.plugin_type and filters.plugin_type != ALL:
        query = query.filter(Resource.plugin_type == filters.plugin_type)

    if filters.category and filters.category != ALL:
        query = query.filter(Resource.category == filters.category)

    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(or_(Resource.title.ilike(term), Resource.description.ilike(term)))

    return query.order_by(Resource.created_at.desc(), Resource.id.desc())
