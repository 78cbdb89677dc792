"""Domain errors raised by the resource services.

Every error carries the HTTP status it maps to and a message that is safe to
show to the end user. The API layer renders them as ``{"detail": message}``.
"""

from enum import StrEnum


class ValidationKind(StrEnum):
    """Why a piece of user input was rejected."""

    EMPTY = "empty"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    PROFANE = "profane"
    SPAM = "spam"
    DUPLICATE = "duplicate"
    MISSING_FIELD = "missing_field"
    INVALID_ARCHIVE = "invalid_archive"
    INVALID_IMAGE = "invalid_image"


class ConflictKind(StrEnum):
    """State conflicts that block a transition."""

    SELF_BAN = "self_ban"
    CANNOT_BAN_ADMIN = "cannot_ban_admin"
    ALREADY_DELETED = "already_deleted"


class ResourceHubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ResourceHubError):
    """Bad, missing or oversized input."""

    status_code = 400

    def __init__(self, kind: ValidationKind, message: str):
        super().__init__(message)
        self.kind = kind


class NotFound(ResourceHubError):
    """Record is absent or soft-deleted."""

    status_code = 404


class PermissionDenied(ResourceHubError):
    """Actor lacks the required role, ownership or account standing."""

    status_code = 403


class Conflict(ResourceHubError):
    """Requested transition is not allowed from the current state."""

    status_code = 409

    def __init__(self, kind: ConflictKind, message: str):
        super().__init__(message)
        self.kind = kind


class RateLimited(ResourceHubError):
    """Too many attempts within the current window."""

    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(f"Too many uploads. Please try again in {retry_after} seconds.")
        self.retry_after = retry_after


class StorageFailure(ResourceHubError):
    """Database write failed on a primary path."""

    status_code = 500


class AssetFailure(ResourceHubError):
    """Writing an uploaded file to the asset store failed."""

    status_code = 500
