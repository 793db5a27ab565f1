"""Chapter model."""
from __future__ import annotations

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from courseware.db import Base
from courseware.db.models.mixins import LifecycleMixin


class Chapter(LifecycleMixin, Base):
    """Represents a chapter within a course."""

    __tablename__ = "chapters"
    __table_args__ = (UniqueConstraint("course_id", "position", name="uq_chapters_course_position"),)

    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id"), nullable=False, index=True)

    course: Mapped["Course"] = relationship("Course", back_populates="chapters")
    lessons: Mapped[list["Lesson"]] = relationship(
        "Lesson",
        back_populates="chapter",
        order_by="Lesson.position",
    )
