"""Resource library and resource models."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from courseware.db import Base
from courseware.db.models.mixins import LifecycleMixin


class ResourceType(str, enum.Enum):
    PDF = "pdf"
    VIDEO = "video"
    AUDIO = "audio"


class ResourceLibrary(LifecycleMixin, Base):
    """A shelf of reusable learning resources."""

    __tablename__ = "resource_libraries"
    __table_args__ = (UniqueConstraint("position", name="uq_resource_libraries_position"),)

    resources: Mapped[list["Resource"]] = relationship(
        "Resource",
        back_populates="library",
        order_by="Resource.position",
    )


class Resource(LifecycleMixin, Base):
    """A file or media reference stored in a library."""

    __tablename__ = "resources"
    __table_args__ = (UniqueConstraint("library_id", "position", name="uq_resources_library_position"),)

    resource_type: Mapped[ResourceType] = mapped_column(
        Enum(
            ResourceType,
            name="resource_type",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    file_size: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    library_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("resource_libraries.id"), nullable=False, index=True
    )

    library: Mapped["ResourceLibrary"] = relationship("ResourceLibrary", back_populates="resources")
