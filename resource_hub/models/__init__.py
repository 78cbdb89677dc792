"""SQLAlchemy models."""

from resource_hub.models.resource import Resource, ResourceVersion
from resource_hub.models.user import User
from resource_hub.models.verification_token import VerificationToken

__all__ = [
    "User",
    "Resource",
    "ResourceVersion",
    "VerificationToken",
]
