"""SQLAlchemy model package."""
from courseware.db.models.category import Category
from courseware.db.models.chapter import Chapter
from courseware.db.models.course import Course
from courseware.db.models.lesson import Lesson, LessonContent, LessonType
from courseware.db.models.resource import Resource, ResourceLibrary, ResourceType

__all__ = [
    "Category",
    "Chapter",
    "Course",
    "Lesson",
    "LessonContent",
    "LessonType",
    "Resource",
    "ResourceLibrary",
    "ResourceType",
]
