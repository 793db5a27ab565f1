"""Pydantic schemas shared across the courseware API."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from courseware.db.models import LessonContent, LessonType, ResourceType
from courseware.lifecycle import Status


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


class EntityRead(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    slug: str
    status: Status
    position: int
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None
    inactivated_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryRead(EntityRead):
    pass


class CourseRead(EntityRead):
    category_id: str


class ChapterRead(EntityRead):
    course_id: str


class LessonRead(EntityRead):
    chapter_id: str
    lesson_type: LessonType
    content: Optional[Dict[str, Any]] = None

    @field_validator("content", mode="before")
    @classmethod
    def unpack_payload(cls, value: Any) -> Any:
        if isinstance(value, LessonContent):
            from courseware.services.lesson_types import payload_view

            return payload_view(value)
        return value


class ResourceLibraryRead(EntityRead):
    pass


class ResourceRead(EntityRead):
    library_id: str
    resource_type: ResourceType
    url: str
    page_count: Optional[int] = None
    file_size: Optional[float] = None
    duration_seconds: Optional[int] = None


# ---------------------------------------------------------------------------
# Write models
# ---------------------------------------------------------------------------


class EntityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class CategoryCreate(EntityCreate):
    pass


class CourseCreate(EntityCreate):
    category_id: str


class ChapterCreate(EntityCreate):
    course_id: str


class LessonCreate(EntityCreate):
    chapter_id: str
    lesson_type: LessonType = LessonType.CONTENT
    content: Optional[Dict[str, Any]] = None


class ResourceLibraryCreate(EntityCreate):
    pass


class ResourceCreate(EntityCreate):
    library_id: str
    resource_type: ResourceType
    url: str = Field(..., min_length=1)
    page_count: Optional[int] = Field(default=None, ge=1)
    file_size: Optional[float] = Field(default=None, ge=0)
    duration_seconds: Optional[int] = Field(default=None, ge=0)


class EntityUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)
    status: Optional[Status] = None

    def ensure_any_field(self) -> None:
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided for update")


class CategoryUpdate(EntityUpdate):
    pass


class CourseUpdate(EntityUpdate):
    category_id: Optional[str] = None


class ChapterUpdate(EntityUpdate):
    course_id: Optional[str] = None


class LessonUpdate(EntityUpdate):
    chapter_id: Optional[str] = None
    lesson_type: Optional[LessonType] = None
    content: Optional[Dict[str, Any]] = None


class ResourceLibraryUpdate(EntityUpdate):
    pass


class ResourceUpdate(EntityUpdate):
    library_id: Optional[str] = None
    resource_type: Optional[ResourceType] = None
    url: Optional[str] = Field(default=None, min_length=1)
    page_count: Optional[int] = Field(default=None, ge=1)
    file_size: Optional[float] = Field(default=None, ge=0)
    duration_seconds: Optional[int] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Lifecycle and bulk requests
# ---------------------------------------------------------------------------


class StatusChange(BaseModel):
    status: Status


class BulkStatusChange(BaseModel):
    ids: List[str]
    status: Status


class PositionEntryIn(BaseModel):
    id: str
    position: int


class BulkPositions(BaseModel):
    entries: List[PositionEntryIn]


class IdsPayload(BaseModel):
    ids: List[str]
    cascade: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class SchemaSet:
    """Create, update and read models that belong to one hierarchy level."""

    create: type[EntityCreate]
    update: type[EntityUpdate]
    read: type[EntityRead]


SCHEMAS: Dict[str, SchemaSet] = {
    "category": SchemaSet(create=CategoryCreate, update=CategoryUpdate, read=CategoryRead),
    "course": SchemaSet(create=CourseCreate, update=CourseUpdate, read=CourseRead),
    "chapter": SchemaSet(create=ChapterCreate, update=ChapterUpdate, read=ChapterRead),
    "lesson": SchemaSet(create=LessonCreate, update=LessonUpdate, read=LessonRead),
    "resource_library": SchemaSet(
        create=ResourceLibraryCreate, update=ResourceLibraryUpdate, read=ResourceLibraryRead
    ),
    "resource": SchemaSet(create=ResourceCreate, update=ResourceUpdate, read=ResourceRead),
}


__all__ = [
    "BulkPositions",
    "BulkStatusChange",
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "ChapterCreate",
    "ChapterRead",
    "ChapterUpdate",
    "CourseCreate",
    "CourseRead",
    "CourseUpdate",
    "EntityCreate",
    "EntityRead",
    "EntityUpdate",
    "IdsPayload",
    "LessonCreate",
    "LessonRead",
    "LessonUpdate",
    "PositionEntryIn",
    "ResourceCreate",
    "ResourceLibraryCreate",
    "ResourceLibraryRead",
    "ResourceLibraryUpdate",
    "ResourceRead",
    "ResourceUpdate",
    "SCHEMAS",
    "SchemaSet",
    "StatusChange",
]
