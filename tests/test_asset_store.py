"""Tests for the on-disk asset store."""

import re
from unittest.mock import patch

import pytest

from resource_hub.services.asset_store import AssetStore, UploadedFile, format_file_size
from resource_hub.services.errors import AssetFailure, ValidationError, ValidationKind

MIB = 1024 * 1024


@pytest.fixture
def store(tmp_path):
    return AssetStore(tmp_path, max_archive_bytes=50 * MIB, max_image_bytes=5 * MIB)


class TestFormatFileSize:
    def test_zero(self):
        assert format_file_size(0) == "0 Bytes"

    def test_units(self):
        assert format_file_size(512) == "512 Bytes"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(50 * MIB) == "50 MB"


class TestUploadedFile:
    def test_extension_is_lowercased(self):
        assert UploadedFile("Config.ZIP", b"x").extension == "zip"

    def test_no_extension(self):
        assert UploadedFile("README", b"x").extension == ""


class TestValidation:
    def test_archive_over_limit_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.validate_archive(UploadedFile("big.zip", b"\0" * (51 * MIB)))
        assert exc_info.value.kind == ValidationKind.INVALID_ARCHIVE

    def test_archive_under_limit_accepted(self, store):
        store.validate_archive(UploadedFile("ok.zip", b"\0" * (49 * MIB)))

    def test_archive_wrong_extension(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.validate_archive(UploadedFile("pack.rar", b"data"))
        assert exc_info.value.message == "File must be a ZIP archive"

    def test_empty_archive_rejected(self, store):
        with pytest.raises(ValidationError):
            store.validate_archive(UploadedFile("empty.zip", b""))

    def test_image_types(self, store):
        for name in ("a.png", "b.JPG", "c.jpeg", "d.webp"):
            store.validate_image(UploadedFile(name, b"img"))
        with pytest.raises(ValidationError) as exc_info:
            store.validate_image(UploadedFile("e.gif", b"img"))
        assert exc_info.value.kind == ValidationKind.INVALID_IMAGE

    def test_explicit_zero_limit_is_respected(self, tmp_path):
        store = AssetStore(tmp_path, max_archive_bytes=0)
        with pytest.raises(ValidationError) as exc_info:
            store.validate_archive(UploadedFile("tiny.zip", b"PK"))
        assert exc_info.value.kind == ValidationKind.INVALID_ARCHIVE

    def test_image_over_limit_rejected(self, store):
        with pytest.raises(ValidationError):
            store.validate_image(UploadedFile("huge.png", b"\0" * (5 * MIB + 1)))


class TestStorage:
    def test_store_archive_uses_random_name(self, store, tmp_path):
        ref = store.store_archive(UploadedFile("../../etc/passwd.zip", b"PK"))

        assert re.fullmatch(r"/downloads/[0-9a-f]{32}\.zip", ref)
        assert (tmp_path / ref.lstrip("/")).read_bytes() == b"PK"

    def test_store_image(self, store):
        ref = store.store_image(UploadedFile("shot.PNG", b"img"))
        assert re.fullmatch(r"/images/items/[0-9a-f]{32}\.png", ref)

    def test_refs_are_unique(self, store):
        upload = UploadedFile("a.zip", b"PK")
        assert store.store_archive(upload) != store.store_archive(upload)

    def test_write_failure_raises_asset_failure(self, store):
        with patch("pathlib.Path.write_bytes", side_effect=OSError("disk full")):
            with pytest.raises(AssetFailure):
                store.store_archive(UploadedFile("a.zip", b"PK"))

    def test_delete_asset(self, store):
        ref = store.store_archive(UploadedFile("a.zip", b"PK"))

        result = store.delete_asset(ref)

        assert result.ok
        assert not store.resolve(ref).exists()

    def test_delete_missing_asset_is_ok(self, store):
        assert store.delete_asset("/downloads/missing.zip").ok

    def test_delete_outside_root_never_raises(self, store):
        result = store.delete_asset("/../../outside.zip")
        assert not result.ok
        assert "escapes" in result.error

    def test_iter_stored(self, store):
        archive = store.store_archive(UploadedFile("a.zip", b"PK"))
        image = store.store_image(UploadedFile("a.png", b"img"))

        refs = {store.to_ref(path) for path in store.iter_stored()}

        assert refs == {archive, image}
