"""User model."""

from sqlalchemy import Boolean, Column, Integer, String

from resource_hub.database import Base
from resource_hub.models.enums import UserRole
from resource_hub.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and resource ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, nullable=False, index=True)  # stored lowercase
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lowercase
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    email_verified = Column(Boolean, nullable=False, default=False)
    is_banned = Column(Boolean, nullable=False, default=False, index=True)
