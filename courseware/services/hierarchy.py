"""Descriptors for each level of the course and resource hierarchies."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from courseware.db.models import Category, Chapter, Course, Lesson, Resource, ResourceLibrary


class DeletePolicy(str, enum.Enum):
    BLOCK = "block"
    CASCADE = "cascade"


@dataclass(frozen=True, slots=True)
class Level:
    key: str
    name: str
    plural: str
    path: str
    model: Any
    scope_attr: str | None = None
    parent_key: str | None = None
    child_key: str | None = None
    delete_policy: DeletePolicy = DeletePolicy.CASCADE
    publish_requires_children: bool = False
    has_payload: bool = False

    @property
    def is_root(self) -> bool:
        return self.parent_key is None

    @property
    def parent(self) -> "Level | None":
        return LEVELS[self.parent_key] if self.parent_key else None

    @property
    def child(self) -> "Level | None":
        return LEVELS[self.child_key] if self.child_key else None

    def scope_of(self, entity: Any) -> str | None:
        """Return the parent id that bounds ``entity``'s sibling positions."""
        return getattr(entity, self.scope_attr) if self.scope_attr else None


CATEGORY = Level(
    key="category",
    name="Category",
    plural="categories",
    path="categories",
    model=Category,
    child_key="course",
    delete_policy=DeletePolicy.BLOCK,
)
COURSE = Level(
    key="course",
    name="Course",
    plural="courses",
    path="courses",
    model=Course,
    scope_attr="category_id",
    parent_key="category",
    child_key="chapter",
    delete_policy=DeletePolicy.BLOCK,
    publish_requires_children=True,
)
CHAPTER = Level(
    key="chapter",
    name="Chapter",
    plural="chapters",
    path="chapters",
    model=Chapter,
    scope_attr="course_id",
    parent_key="course",
    child_key="lesson",
    publish_requires_children=True,
)
LESSON = Level(
    key="lesson",
    name="Lesson",
    plural="lessons",
    path="lessons",
    model=Lesson,
    scope_attr="chapter_id",
    parent_key="chapter",
    has_payload=True,
)
RESOURCE_LIBRARY = Level(
    key="resource_library",
    name="Resource library",
    plural="resource libraries",
    path="resource-libraries",
    model=ResourceLibrary,
    child_key="resource",
)
RESOURCE = Level(
    key="resource",
    name="Resource",
    plural="resources",
    path="resources",
    model=Resource,
    scope_attr="library_id",
    parent_key="resource_library",
)

LEVELS: dict[str, Level] = {
    level.key: level
    for level in (CATEGORY, COURSE, CHAPTER, LESSON, RESOURCE_LIBRARY, RESOURCE)
}


def get_level(key: str) -> Level:
    try:
        return LEVELS[key]
    except KeyError as exc:
        raise KeyError(f"Unknown hierarchy level: {key}") from exc


__all__ = [
    "CATEGORY",
    "CHAPTER",
    "COURSE",
    "DeletePolicy",
    "LESSON",
    "LEVELS",
    "Level",
    "RESOURCE",
    "RESOURCE_LIBRARY",
    "get_level",
]
