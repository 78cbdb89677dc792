"""Version history retention: keep the newest N versions of each resource."""

import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resource_hub.models.resource import Resource, ResourceVersion
from resource_hub.services.asset_store import AssetStore
from resource_hub.services.errors import StorageFailure

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 10


@dataclass
class NewVersion:
    """Already-stored assets and metadata for a version about to be recorded."""

    version: str
    changelog: str
    zip_url: str
    file_size: str
    image_urls: list[str] = field(default_factory=list)


@dataclass
class RetentionOutcome:
    """The recorded version plus any non-fatal cleanup problems."""

    version: ResourceVersion
    warnings: list[str] = field(default_factory=list)


class VersionRetentionManager:
    """Records versions and prunes history beyond the retention limit."""

    def __init__(self, db: Session, asset_store: AssetStore, keep: int = DEFAULT_KEEP):
        self.db = db
        self.asset_store = asset_store
        self.keep = keep

    def record_new_version(self, resource: Resource, data: NewVersion) -> RetentionOutcome:
        """Insert a version, make it current, then enforce retention.

        The new version is always the newest, so pruning never removes it.
        """
        version = ResourceVersion(
            resource_id=resource.id,
            version=data.version,
            changelog=data.changelog,
            zip_url=data.zip_url,
            image_urls=list(data.image_urls),
            file_size=data.file_size,
        )
        self.db.add(version)
        resource.current_version = data.version

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record version {data.version} for resource {resource.id}: {e}")
            raise StorageFailure("Failed to create new version") from e

        self.db.refresh(version)
        logger.info(f"Recorded version {version.version} for resource {resource.id}")

        warnings = self.enforce_retention(resource.id)
        return RetentionOutcome(version=version, warnings=warnings)

    def enforce_retention(self, resource_id: int, keep: int | None = None) -> list[str]:
        """Delete versions beyond the newest ``keep``, assets first.

        Failures are logged and returned as warnings; they never abort pruning
        of the remaining versions.
        """
        keep = self.keep if keep is None else keep
        try:
            versions = (
                self.db.query(ResourceVersion)
                .filter(ResourceVersion.resource_id == resource_id)
                .order_by(ResourceVersion.created_at.desc(), ResourceVersion.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load versions of resource {resource_id} for pruning: {e}")
            return ["Could not prune old versions"]

        surplus = versions[keep:]
        if not surplus:
            return []

        warnings: list[str] = []
        for old in surplus:
            old_id, label = old.id, old.version
            for ref in [old.zip_url, *(old.image_urls or [])]:
                result = self.asset_store.delete_asset(ref)
                if not result.ok:
                    warnings.append(f"Could not delete {ref} of version {label}: {result.error}")

            try:
                self.db.delete(old)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to delete version {old_id} of resource {resource_id}: {e}")
                warnings.append(f"Could not delete version record {label}")

        logger.info(
            f"Pruned {len(surplus)} old version(s) of resource {resource_id} "
            f"({len(warnings)} warning(s))"
        )
        return warnings
