"""On-disk storage for uploaded archives and images."""

import logging
import secrets
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from resource_hub.config import get_settings
from resource_hub.services.errors import AssetFailure, ValidationError, ValidationKind

logger = logging.getLogger(__name__)

ARCHIVE_EXTENSIONS = frozenset({"zip"})
IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "webp"})

# Ref prefix -> directory under the storage root
ARCHIVE_DIR = PurePosixPath("downloads")
IMAGE_DIR = PurePosixPath("images") / "items"


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file as received from the client."""

    filename: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lowercased extension without the dot, or an empty string."""
        name = PurePosixPath(self.filename.replace("\\", "/")).name
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[1].lower()


@dataclass(frozen=True)
class AssetDeletion:
    """Outcome of deleting one stored asset."""

    ref: str
    ok: bool
    error: str | None = None


def format_file_size(num_bytes: int) -> str:
    """Format a byte count for display, e.g. ``"1.5 MB"``."""
    if num_bytes == 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{round(size, 2):g} {units[unit]}"


class AssetStore:
    """Writes uploads under randomized names and hands back opaque refs.

    Refs look like ``/downloads/<hex>.zip`` or ``/images/items/<hex>.png`` and
    are what the data model persists. Original filenames are only consulted for
    their extension.
    """

    def __init__(
        self,
        root: str | Path,
        max_archive_bytes: int | None = None,
        max_image_bytes: int | None = None,
    ):
        settings = get_settings()
        self.root = Path(root).resolve()
        self.max_archive_bytes = (
            settings.max_archive_bytes if max_archive_bytes is None else max_archive_bytes
        )
        self.max_image_bytes = (
            settings.max_image_bytes if max_image_bytes is None else max_image_bytes
        )

    # --- Validation ---

    def validate_archive(self, upload: UploadedFile) -> None:
        """Reject archives that are too large, empty, or not ZIP files."""
        if upload.extension not in ARCHIVE_EXTENSIONS:
            raise ValidationError(ValidationKind.INVALID_ARCHIVE, "File must be a ZIP archive")
        if upload.size == 0:
            raise ValidationError(
                ValidationKind.INVALID_ARCHIVE, "File appears to be empty or corrupted"
            )
        if upload.size > self.max_archive_bytes:
            raise ValidationError(
                ValidationKind.INVALID_ARCHIVE,
                f"ZIP file must be at most {format_file_size(self.max_archive_bytes)}",
            )

    def validate_image(self, upload: UploadedFile) -> None:
        """Reject images that are too large or of an unsupported type."""
        if upload.extension not in IMAGE_EXTENSIONS:
            raise ValidationError(
                ValidationKind.INVALID_IMAGE,
                f"Image {upload.filename} must be PNG, JPG, JPEG, or WebP",
            )
        if upload.size > self.max_image_bytes:
            raise ValidationError(
                ValidationKind.INVALID_IMAGE,
                f"Image {upload.filename} must be at most "
                f"{format_file_size(self.max_image_bytes)}",
            )

    # --- Writes ---

    def store_archive(self, upload: UploadedFile) -> str:
        """Validate and persist a ZIP archive, returning its ref."""
        self.validate_archive(upload)
        return self._write(ARCHIVE_DIR, upload)

    def store_image(self, upload: UploadedFile) -> str:
        """Validate and persist an image, returning its ref."""
        self.validate_image(upload)
        return self._write(IMAGE_DIR, upload)

    def _write(self, directory: PurePosixPath, upload: UploadedFile) -> str:
        name = f"{secrets.token_hex(16)}.{upload.extension}"
        ref = f"/{directory / name}"
        target = self.resolve(ref)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(upload.data)
        except OSError as e:
            logger.error(f"Failed to write asset {ref}: {e}")
            raise AssetFailure("Failed to store uploaded file") from e
        logger.info(f"Stored asset {ref} ({format_file_size(upload.size)})")
        return ref

    # --- Deletes ---

    def delete_asset(self, ref: str) -> AssetDeletion:
        """Delete a stored asset. Never raises; missing files count as deleted."""
        try:
            target = self.resolve(ref)
            target.unlink(missing_ok=True)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete asset {ref}: {e}")
            return AssetDeletion(ref=ref, ok=False, error=str(e))
        logger.info(f"Deleted asset {ref}")
        return AssetDeletion(ref=ref, ok=True)

    # --- Paths ---

    def resolve(self, ref: str) -> Path:
        """Map a ref to its path on disk, refusing anything outside the root."""
        target = (self.root / ref.lstrip("/")).resolve()
        if not target.is_relative_to(self.root):
            raise ValueError(f"Asset ref escapes storage root: {ref}")
        return target

    def to_ref(self, path: Path) -> str:
        """Inverse of resolve() for files found under the root."""
        return "/" + path.resolve().relative_to(self.root).as_posix()

    def iter_stored(self) -> list[Path]:
        """List every stored archive and image file."""
        files: list[Path] = []
        for directory in (ARCHIVE_DIR, IMAGE_DIR):
            base = self.root / directory
            if base.is_dir():
                files.extend(p for p in base.iterdir() if p.is_file())
        return files


def get_default_asset_store() -> AssetStore:
    """Build an asset store rooted at the configured storage directory."""
    return AssetStore(get_settings().storage_root)
