"""Resource lifecycle: uploads, versions, edits, moderation and bans."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resource_hub.models.enums import UserRole
from resource_hub.models.resource import Resource, ResourceVersion
from resource_hub.models.user import User
from resource_hub.services import access_policy
from resource_hub.services.asset_store import AssetStore, UploadedFile, format_file_size
from resource_hub.services.content_filter import (
    find_similar_title,
    validate_description,
    validate_title,
)
from resource_hub.services.errors import (
    Conflict,
    ConflictKind,
    NotFound,
    PermissionDenied,
    RateLimited,
    StorageFailure,
    ValidationError,
    ValidationKind,
)
from resource_hub.services.rate_limit import RateLimiter
from resource_hub.services.resource_query import ResourceFilter, build_resource_query
from resource_hub.services.retention import (
    DEFAULT_KEEP,
    NewVersion,
    RetentionOutcome,
    VersionRetentionManager,
)

logger = logging.getLogger(__name__)

INITIAL_CHANGELOG = "Initial release"
DEFAULT_CHANGELOG = "No changelog provided"

# Column widths of the resources and resource_versions tables
VERSION_MAX_LENGTH = 50
PLUGIN_TYPE_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 100


def _check_length(value: str | None, label: str, max_length: int) -> None:
    if len((value or "").strip()) > max_length:
        raise ValidationError(
            ValidationKind.TOO_LONG, f"{label} must be at most {max_length} characters"
        )


@dataclass
class ResourceDraft:
    """Fields submitted with a new resource."""

    title: str
    description: str
    plugin_type: str
    content: str
    version: str
    category: str | None = None
    changelog: str | None = None


@dataclass
class VersionDraft:
    """Fields submitted with a new version of an existing resource."""

    version: str
    changelog: str | None = None


@dataclass
class ToggleResult:
    """New state after a toggle and a message for the user."""

    value: bool
    message: str


@dataclass
class ResourceView:
    """A resource as seen by one viewer."""

    resource: Resource
    can_edit: bool
    can_delete: bool


@dataclass
class UserSummary:
    """A user with the number of resources they have uploaded."""

    user: User
    resource_count: int


class ResourceService:
    """Service for resource lifecycle operations.

    Composes the content filter, asset store and retention manager. All
    permission checks take the acting ``User``; read operations accept ``None``
    for anonymous viewers.
    """

    def __init__(
        self,
        db: Session,
        asset_store: AssetStore,
        rate_limiter: RateLimiter | None = None,
        retention_keep: int = DEFAULT_KEEP,
        duplicate_check: bool = True,
    ):
        self.db = db
        self.asset_store = asset_store
        self.rate_limiter = rate_limiter
        self.retention = VersionRetentionManager(db, asset_store, keep=retention_keep)
        self.duplicate_check = duplicate_check

    # --- Lookups and guards ---

    def _get_live_resource(self, resource_id: int) -> Resource:
        """Get a resource that exists and is not soft-deleted."""
        resource = self.db.get(Resource, resource_id)
        if resource is None or resource.deleted_at is not None:
            raise NotFound("Resource not found")
        return resource

    def _require_admin(self, actor: User) -> None:
        if not access_policy.is_admin(actor):
            raise PermissionDenied("Admin access required")

    def _require_editor(self, resource: Resource, actor: User, action: str) -> None:
        if not access_policy.can_edit(resource, actor):
            raise PermissionDenied(f"You do not have permission to {action} this resource")

    def _check_rate_limit(self, actor: User) -> None:
        if self.rate_limiter is None:
            return
        decision = self.rate_limiter.check(f"upload:{actor.id}")
        if not decision.allowed:
            raise RateLimited(decision.retry_after)

    def _commit(self, failure_message: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure_message}: {e}")
            raise StorageFailure(failure_message) from e

    # --- Uploads ---

    def _store_uploads(
        self, archive: UploadedFile | None, images: list[UploadedFile]
    ) -> tuple[str, list[str], str]:
        """Validate every upload, then write them.

        Nothing is written unless all files pass validation. Returns the
        archive ref, image refs and human-readable archive size.
        """
        if archive is None:
            raise ValidationError(ValidationKind.MISSING_FIELD, "A ZIP file is required")

        self.asset_store.validate_archive(archive)
        for image in images:
            self.asset_store.validate_image(image)

        zip_url = self.asset_store.store_archive(archive)
        image_urls = [self.asset_store.store_image(image) for image in images]
        return zip_url, image_urls, format_file_size(archive.size)

    def create_resource(
        self,
        owner: User,
        draft: ResourceDraft,
        archive: UploadedFile | None,
        images: list[UploadedFile] | None = None,
    ) -> Resource:
        """Create a resource pending approval together with its first version.

        Assets stored before a failed database write are not cleaned up here;
        the orphan sweep task removes them later.
        """
        images = images or []

        if not owner.email_verified:
            raise PermissionDenied("Please verify your email before uploading resources")
        if owner.is_banned:
            raise PermissionDenied("Your account has been banned")

        self._check_rate_limit(owner)

        missing = [
            name
            for name, value in (
                ("plugin type", draft.plugin_type),
                ("content", draft.content),
                ("version", draft.version),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise ValidationError(
                ValidationKind.MISSING_FIELD, f"Missing required fields: {', '.join(missing)}"
            )

        _check_length(draft.plugin_type, "Plugin type", PLUGIN_TYPE_MAX_LENGTH)
        _check_length(draft.category, "Category", CATEGORY_MAX_LENGTH)
        _check_length(draft.version, "Version", VERSION_MAX_LENGTH)
        validate_title(draft.title)
        validate_description(draft.description)
        if self.duplicate_check:
            self._reject_duplicate_title(owner.id, draft.title)

        zip_url, image_urls, file_size = self._store_uploads(archive, images)

        resource = Resource(
            owner_id=owner.id,
            title=draft.title.strip(),
            description=draft.description.strip(),
            plugin_type=draft.plugin_type.strip(),
            category=(draft.category or "").strip() or None,
            content=draft.content,
            current_version=draft.version.strip(),
            is_visible=True,
            is_approved=False,
            download_count=0,
        )
        resource.versions.append(
            ResourceVersion(
                version=draft.version.strip(),
                changelog=(draft.changelog or "").strip() or INITIAL_CHANGELOG,
                zip_url=zip_url,
                image_urls=image_urls,
                file_size=file_size,
            )
        )
        self.db.add(resource)
        self._commit("Failed to create resource. Please try again.")
        self.db.refresh(resource)

        logger.info(f"User {owner.id} created resource {resource.id} ({resource.title!r})")
        return resource

    def _reject_duplicate_title(
        self, owner_id: int, title: str, exclude_id: int | None = None
    ) -> None:
        query = self.db.query(Resource.title).filter(
            Resource.owner_id == owner_id,
            Resource.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.filter(Resource.id != exclude_id)

        existing_titles = [existing for (existing,) in query.all()]
        similar = find_similar_title(title, existing_titles)
        if similar is not None:
            raise ValidationError(
                ValidationKind.DUPLICATE, f"You already have a similar resource: {similar}"
            )

    def add_version(
        self,
        resource_id: int,
        actor: User,
        draft: VersionDraft,
        archive: UploadedFile | None,
        images: list[UploadedFile] | None = None,
    ) -> RetentionOutcome:
        """Upload a new version and prune history beyond the retention limit."""
        images = images or []
        resource = self._get_live_resource(resource_id)

        if not access_policy.can_edit(resource, actor):
            raise PermissionDenied("You do not have permission to add versions to this resource")

        self._check_rate_limit(actor)

        if not (draft.version or "").strip():
            raise ValidationError(ValidationKind.MISSING_FIELD, "Version number is required")
        _check_length(draft.version, "Version", VERSION_MAX_LENGTH)

        zip_url, image_urls, file_size = self._store_uploads(archive, images)

        return self.retention.record_new_version(
            resource,
            NewVersion(
                version=draft.version.strip(),
                changelog=(draft.changelog or "").strip() or DEFAULT_CHANGELOG,
                zip_url=zip_url,
                image_urls=image_urls,
                file_size=file_size,
            ),
        )

    # --- Edits ---

    def edit_resource(self, resource_id: int, actor: User, changes: dict[str, Any]) -> Resource:
        """Apply a partial update.

        Only keys present in ``changes`` are touched. ``category`` set to an
        empty value clears it.
        """
        resource = self._get_live_resource(resource_id)
        self._require_editor(resource, actor, "edit")

        # Validate everything before touching the record
        if "title" in changes:
            validate_title(changes["title"])
            if self.duplicate_check:
                self._reject_duplicate_title(
                    resource.owner_id, changes["title"], exclude_id=resource.id
                )
        if "description" in changes:
            validate_description(changes["description"])
        for field, label in (("plugin_type", "Plugin type"), ("content", "Content")):
            if field in changes and not (changes[field] or "").strip():
                raise ValidationError(ValidationKind.EMPTY, f"{label} cannot be empty")
        if "plugin_type" in changes:
            _check_length(changes["plugin_type"], "Plugin type", PLUGIN_TYPE_MAX_LENGTH)
        if "category" in changes:
            _check_length(changes["category"], "Category", CATEGORY_MAX_LENGTH)

        if "title" in changes:
            resource.title = changes["title"].strip()
        if "description" in changes:
            resource.description = changes["description"].strip()
        if "plugin_type" in changes:
            resource.plugin_type = changes["plugin_type"].strip()
        if "content" in changes:
            resource.content = changes["content"]
        if "category" in changes:
            resource.category = (changes["category"] or "").strip() or None

        self._commit("Failed to update resource")
        self.db.refresh(resource)
        return resource

    def soft_delete(self, resource_id: int, actor: User) -> None:
        """Mark a resource deleted. Assets and versions are kept."""
        resource = self.db.get(Resource, resource_id)
        if resource is None:
            raise NotFound("Resource not found")
        if resource.deleted_at is not None:
            raise Conflict(ConflictKind.ALREADY_DELETED, "Resource already deleted")
        self._require_editor(resource, actor, "delete")

        resource.soft_delete()
        self._commit("Failed to delete resource")
        logger.info(f"User {actor.id} deleted resource {resource_id}")

    # --- Moderation ---

    def toggle_approval(self, resource_id: int, actor: User) -> ToggleResult:
        """Flip admin approval."""
        self._require_admin(actor)
        resource = self._get_live_resource(resource_id)

        resource.is_approved = not resource.is_approved
        self._commit("Failed to toggle approval status")
        logger.info(
            f"Admin {actor.id} set approval of resource {resource_id} to {resource.is_approved}"
        )
        return ToggleResult(
            value=resource.is_approved,
            message="Resource approved" if resource.is_approved else "Resource unapproved",
        )

    def toggle_admin_visibility(self, resource_id: int, actor: User) -> ToggleResult:
        """Hide or show a resource as a moderation action."""
        self._require_admin(actor)
        resource = self._get_live_resource(resource_id)

        resource.is_visible = not resource.is_visible
        self._commit("Failed to toggle visibility")
        return ToggleResult(
            value=resource.is_visible,
            message="Resource shown" if resource.is_visible else "Resource hidden",
        )

    def toggle_owner_visibility(self, resource_id: int, actor: User) -> ToggleResult:
        """Hide or show a resource as its owner. Admins use the moderation toggle."""
        resource = self._get_live_resource(resource_id)
        if not access_policy.is_owner(resource, actor):
            raise PermissionDenied("Only the resource owner can toggle visibility")

        resource.is_visible = not resource.is_visible
        self._commit("Failed to toggle visibility")
        return ToggleResult(
            value=resource.is_visible,
            message=f"Resource is now {'visible' if resource.is_visible else 'hidden'}",
        )

    def ban_user(self, actor: User, target_id: int) -> ToggleResult:
        """Ban or unban a regular user."""
        self._require_admin(actor)
        if target_id == actor.id:
            raise Conflict(ConflictKind.SELF_BAN, "You cannot ban yourself")

        target = self.db.get(User, target_id)
        if target is None:
            raise NotFound("User not found")
        if target.role == UserRole.ADMIN:
            raise Conflict(ConflictKind.CANNOT_BAN_ADMIN, "Cannot ban other administrators")

        target.is_banned = not target.is_banned
        self._commit("Failed to toggle ban status")
        logger.info(f"Admin {actor.id} set ban of user {target_id} to {target.is_banned}")
        return ToggleResult(
            value=target.is_banned,
            message="User banned" if target.is_banned else "User unbanned",
        )

    # --- Downloads ---

    def increment_download_count(self, resource_id: int) -> bool:
        """Count a download. Never raises: tracking must not block the download."""
        try:
            result = self.db.execute(
                update(Resource)
                .where(Resource.id == resource_id, Resource.deleted_at.is_(None))
                .values(download_count=Resource.download_count + 1)
            )
            self.db.commit()
        except Exception as e:
            # Don't fail the download if tracking fails
            self.db.rollback()
            logger.error(f"Failed to track download for resource {resource_id}: {e}")
            return False

        if result.rowcount == 0:
            logger.warning(f"Download tracked for unknown resource {resource_id}")
            return False
        return True

    # --- Reads ---

    def get_resource(self, resource_id: int, viewer: User | None) -> ResourceView:
        """Get a resource with the viewer's edit/delete rights."""
        resource = self._get_live_resource(resource_id)
        if not access_policy.can_view(resource, viewer):
            raise PermissionDenied("You do not have permission to view this resource")

        return ResourceView(
            resource=resource,
            can_edit=access_policy.can_edit(resource, viewer),
            can_delete=access_policy.can_delete(resource, viewer),
        )

    def list_versions(self, resource_id: int, viewer: User | None) -> list[ResourceVersion]:
        """Get version history, newest first."""
        resource = self.get_resource(resource_id, viewer).resource
        return (
            self.db.query(ResourceVersion)
            .filter(ResourceVersion.resource_id == resource.id)
            .order_by(ResourceVersion.created_at.desc(), ResourceVersion.id.desc())
            .all()
        )

    def list_resources(self, filters: ResourceFilter, viewer: User | None) -> list[Resource]:
        """List resources the viewer may see, newest first."""
        return build_resource_query(self.db, filters, viewer).all()

    def version_counts(self, resource_ids: list[int]) -> dict[int, int]:
        """Count versions for several resources in one query."""
        if not resource_ids:
            return {}
        counts = (
            self.db.query(ResourceVersion.resource_id, func.count(ResourceVersion.id))
            .filter(ResourceVersion.resource_id.in_(resource_ids))
            .group_by(ResourceVersion.resource_id)
            .all()
        )
        return dict(counts)

    def list_users(self, actor: User) -> list[UserSummary]:
        """List all users with their resource counts (admin only)."""
        self._require_admin(actor)
        rows = (
            self.db.query(User, func.count(Resource.id))
            .outerjoin(Resource, Resource.owner_id == User.id)
            .group_by(User.id)
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
        return [UserSummary(user=user, resource_count=count) for user, count in rows]
