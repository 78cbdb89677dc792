"""Celery task that removes stored files no version references."""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from resource_hub.celery_app import app as celery_app
from resource_hub.config import get_settings
from resource_hub.database import SessionLocal
from resource_hub.models.resource import ResourceVersion
from resource_hub.services.asset_store import AssetStore, get_default_asset_store

logger = logging.getLogger(__name__)


def referenced_refs(db: Session) -> set[str]:
    """Collect every asset ref held by a resource version."""
    refs: set[str] = set()
    for zip_url, image_urls in db.query(ResourceVersion.zip_url, ResourceVersion.image_urls):
        refs.add(zip_url)
        refs.update(image_urls or [])
    return refs


def sweep(
    db: Session,
    store: AssetStore,
    grace_hours: int,
    now: datetime | None = None,
) -> dict:
    """Delete unreferenced files older than the grace period.

    Recent files are skipped because an upload may have stored its assets but
    not yet committed the version that references them.
    """
    now = now or datetime.now(UTC)
    cutoff = (now - timedelta(hours=grace_hours)).timestamp()
    keep = referenced_refs(db)
    stats = {"scanned": 0, "deleted": 0, "failed": 0, "skipped_recent": 0}

    for path in store.iter_stored():
        stats["scanned"] += 1
        ref = store.to_ref(path)
        if ref in keep:
            continue
        try:
            modified = path.stat().st_mtime
        except OSError as e:
            # Removed or unreadable since the directory listing
            logger.warning(f"Could not stat {ref} during sweep: {e}")
            stats["failed"] += 1
            continue
        if modified > cutoff:
            stats["skipped_recent"] += 1
            continue

        result = store.delete_asset(ref)
        if result.ok:
            stats["deleted"] += 1
        else:
            stats["failed"] += 1

    logger.info(f"Orphaned asset sweep finished: {stats}")
    return stats


@celery_app.task
def sweep_orphaned_assets() -> dict:
    """Remove assets left behind by failed uploads or failed cleanups.

    This task runs daily via celery-beat.

    Returns:
        dict with sweep statistics
    """
    db: Session = SessionLocal()
    try:
        return sweep(db, get_default_asset_store(), get_settings().orphan_sweep_grace_hours)
    finally:
        db.close()
