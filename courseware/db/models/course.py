"""Course model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from courseware.db import Base
from courseware.db.models.mixins import LifecycleMixin


class Course(LifecycleMixin, Base):
    """A course inside a category."""

    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("category_id", "position", name="uq_courses_category_position"),)

    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )

    category: Mapped["Category"] = relationship("Category", back_populates="courses")
    chapters: Mapped[list["Chapter"]] = relationship(
        "Chapter",
        back_populates="course",
        order_by="Chapter.position",
    )
