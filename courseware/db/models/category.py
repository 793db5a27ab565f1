"""Category model."""
from __future__ import annotations

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, relationship

from courseware.db import Base
from courseware.db.models.mixins import LifecycleMixin


class Category(LifecycleMixin, Base):
    """Top-level grouping of courses."""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("position", name="uq_categories_position"),)

    courses: Mapped[list["Course"]] = relationship(
        "Course",
        back_populates="category",
        order_by="Course.position",
    )
