"""Service-level tests for resource lifecycle rules."""

from unittest.mock import patch

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from resource_hub.models.resource import Resource
from resource_hub.services.asset_store import UploadedFile
from resource_hub.services.errors import (
    NotFound,
    PermissionDenied,
    StorageFailure,
    ValidationError,
    ValidationKind,
)
from resource_hub.services.resource_query import ResourceFilter
from resource_hub.services.resource_service import ResourceDraft, ResourceService, VersionDraft


@pytest.fixture
def service(db, asset_store):
    return ResourceService(db, asset_store)


def _draft(**overrides) -> ResourceDraft:
    fields = {
        "title": "Survival Economy Pack",
        "description": "Shop prices tuned for survival servers.",
        "plugin_type": "EssentialsX",
        "content": "# Economy",
        "version": "1.0.0",
    }
    fields.update(overrides)
    return ResourceDraft(**fields)


def _archive() -> UploadedFile:
    return UploadedFile("pack.zip", b"PK\x03\x04")


def test_create_resource_trims_fields(service, user):
    resource = service.create_resource(
        user, _draft(title="  Padded Title  ", category="   "), _archive()
    )
    assert resource.title == "Padded Title"
    assert resource.category is None
    assert resource.versions[0].file_size == "4 Bytes"


def test_banned_owner_cannot_upload(service, make_user):
    banned = make_user("banned", is_banned=True)
    with pytest.raises(PermissionDenied):
        service.create_resource(banned, _draft(), _archive())


def test_duplicate_check_can_be_disabled(db, asset_store, user):
    service = ResourceService(db, asset_store, duplicate_check=False)
    service.create_resource(user, _draft(), _archive())
    service.create_resource(user, _draft(), _archive())
    assert db.query(Resource).count() == 2


def test_duplicate_check_ignores_deleted(service, user):
    first = service.create_resource(user, _draft(), _archive())
    service.soft_delete(first.id, user)
    service.create_resource(user, _draft(), _archive())


def test_failed_commit_raises_storage_failure(service, db, user):
    error = OperationalError("INSERT", {}, Exception("disk I/O error"))
    with patch.object(db, "commit", side_effect=error):
        with pytest.raises(StorageFailure):
            service.create_resource(user, _draft(), _archive())


def test_invalid_archive_writes_nothing(service, user, asset_store):
    with pytest.raises(ValidationError) as exc_info:
        service.create_resource(user, _draft(), UploadedFile("pack.7z", b"data"))
    assert exc_info.value.kind == ValidationKind.INVALID_ARCHIVE
    assert asset_store.iter_stored() == []


def test_non_admin_cannot_moderate(service, user, other_user):
    resource = service.create_resource(user, _draft(), _archive())
    with pytest.raises(PermissionDenied):
        service.toggle_approval(resource.id, other_user)
    with pytest.raises(PermissionDenied):
        service.ban_user(user, other_user.id)
    with pytest.raises(PermissionDenied):
        service.list_users(user)


def test_admin_can_edit_and_delete_any_resource(service, user, admin):
    resource = service.create_resource(user, _draft(), _archive())

    service.edit_resource(resource.id, admin, {"content": "moderated"})
    service.soft_delete(resource.id, admin)

    with pytest.raises(NotFound):
        service.get_resource(resource.id, admin)


def test_edit_rejects_blank_plugin_type(service, user):
    resource = service.create_resource(user, _draft(), _archive())
    with pytest.raises(ValidationError) as exc_info:
        service.edit_resource(resource.id, user, {"plugin_type": "  "})
    assert exc_info.value.message == "Plugin type cannot be empty"


def test_admin_listing_sees_everything(service, user, admin):
    resource = service.create_resource(user, _draft(), _archive())
    resource.is_visible = False
    service.db.commit()

    assert service.list_resources(ResourceFilter(), None) == []
    assert [r.id for r in service.list_resources(ResourceFilter(), admin)] == [resource.id]
    assert service.list_resources(ResourceFilter(visible=True), admin) == []


def test_owner_scope(service, user, other_user):
    mine = service.create_resource(user, _draft(), _archive())
    service.create_resource(other_user, _draft(title="Spawn Protection Regions"), _archive())

    scoped = service.list_resources(ResourceFilter(owner_scope=user.id), user)
    assert [r.id for r in scoped] == [mine.id]


def test_version_counts(service, user):
    resource = service.create_resource(user, _draft(), _archive())
    assert service.version_counts([resource.id]) == {resource.id: 1}
    assert service.version_counts([]) == {}


def test_overlong_version_rejected_before_storing(service, user, asset_store):
    resource = service.create_resource(user, _draft(), _archive())
    stored = len(asset_store.iter_stored())

    with pytest.raises(ValidationError) as exc_info:
        service.add_version(resource.id, user, VersionDraft(version="x" * 51), _archive())

    assert exc_info.value.kind == ValidationKind.TOO_LONG
    assert exc_info.value.message == "Version must be at most 50 characters"
    assert len(asset_store.iter_stored()) == stored


@pytest.mark.parametrize(
    "overrides",
    [
        {"version": "1." * 30},
        {"plugin_type": "p" * 101},
        {"category": "c" * 101},
    ],
)
def test_overlong_create_fields_rejected(service, user, asset_store, overrides):
    with pytest.raises(ValidationError) as exc_info:
        service.create_resource(user, _draft(**overrides), _archive())

    assert exc_info.value.kind == ValidationKind.TOO_LONG
    assert asset_store.iter_stored() == []


def test_edit_rejects_overlong_category(service, user):
    resource = service.create_resource(user, _draft(), _archive())
    with pytest.raises(ValidationError) as exc_info:
        service.edit_resource(resource.id, user, {"category": "c" * 101})
    assert exc_info.value.kind == ValidationKind.TOO_LONG


def test_listing_loads_versions_up_front(service, db, user):
    for title in ("Survival Economy Pack", "Spawn Protection Regions", "Staff Permission Tracks"):
        service.create_resource(user, _draft(title=title), _archive())
    db.expire_all()
    resources = service.list_resources(ResourceFilter(), user)

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db.get_bind()
    event.listen(engine, "before_cursor_execute", record)
    try:
        latest = [r.versions[0].version for r in resources]
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert latest == ["1.0.0", "1.0.0", "1.0.0"]
    assert statements == []
