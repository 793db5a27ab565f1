"""Lesson and lesson payload models."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from courseware.db import Base
from courseware.db.models.mixins import LifecycleMixin, UTCDateTime, new_id, utcnow


class LessonType(str, enum.Enum):
    CONTENT = "content"
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    PDF = "pdf"


class Lesson(LifecycleMixin, Base):
    """Represents a lesson within a chapter."""

    __tablename__ = "lessons"
    __table_args__ = (UniqueConstraint("chapter_id", "position", name="uq_lessons_chapter_position"),)

    lesson_type: Mapped[LessonType] = mapped_column(
        Enum(
            LessonType,
            name="lesson_type",
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=LessonType.CONTENT,
    )
    chapter_id: Mapped[str] = mapped_column(String(36), ForeignKey("chapters.id"), nullable=False, index=True)

    chapter: Mapped["Chapter"] = relationship("Chapter", back_populates="lessons")
    content: Mapped["LessonContent | None"] = relationship(
        "LessonContent",
        back_populates="lesson",
        uselist=False,
    )


class LessonContent(Base):
    """Type-specific payload attached to exactly one lesson."""

    __tablename__ = "lesson_contents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    lesson_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lessons.id"), nullable=False, unique=True, index=True
    )
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    delete_batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    lesson: Mapped["Lesson"] = relationship("Lesson", back_populates="content")

    def __repr__(self) -> str:  # pragma: no cover
        return f"LessonContent(id={self.id!r}, lesson_id={self.lesson_id!r})"
