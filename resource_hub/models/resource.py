"""Resource and resource version models."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from resource_hub.database import Base
from resource_hub.models.mixins import SoftDeleteMixin, TimestampMixin


class Resource(Base, TimestampMixin, SoftDeleteMixin):
    """A user-submitted downloadable plugin configuration."""

    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    plugin_type = Column(String(100), nullable=False, index=True)
    category = Column(String(100), nullable=True, index=True)
    content = Column(Text, nullable=False)
    current_version = Column(String(50), nullable=False)
    is_visible = Column(Boolean, nullable=False, default=True)  # owner-controlled
    is_approved = Column(Boolean, nullable=False, default=False)  # admin-controlled
    download_count = Column(Integer, nullable=False, default=0)

    # Relationships
    owner = relationship("User", backref="resources")
    versions = relationship(
        "ResourceVersion",
        back_populates="resource",
        cascade="all, delete-orphan",
        order_by="(ResourceVersion.created_at.desc(), ResourceVersion.id.desc())",
    )


class ResourceVersion(Base):
    """An immutable snapshot (archive, images, changelog) in a resource's history."""

    __tablename__ = "resource_versions"

    id = Column(Integer, primary_key=True, index=True)
    resource_id = Column(Integer, ForeignKey("resources.id"), nullable=False, index=True)
    version = Column(String(50), nullable=False)
    changelog = Column(Text, nullable=False)
    zip_url = Column(String(255), nullable=False)
    # Ordered asset refs: ["/images/items/<name>.png", ...]
    image_urls = Column(JSON, nullable=False, default=list)
    file_size = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    resource = relationship("Resource", back_populates="versions")
