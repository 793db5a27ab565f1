"""Development fixture helpers."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from courseware.db.models import Category
from courseware.lifecycle import Status
from courseware.services import BulkService, EntityService, get_level


def seed_dev_data(session: Session) -> None:
    """Populate the database with one published course and a resource library."""
    if session.scalar(select(Category.id).limit(1)) is not None:
        return

    categories = EntityService(session, get_level("category"))
    courses = EntityService(session, get_level("course"))
    chapters = EntityService(session, get_level("chapter"))
    lessons = EntityService(session, get_level("lesson"))

    category = categories.create(
        {"title": "Earth Sciences", "description": "Courses about the planet and its systems."}
    )["data"]
    course = courses.create(
        {
            "title": "Introduction to Climate Science",
            "description": "A three-week course exploring climate systems and change.",
            "category_id": category["id"],
        }
    )["data"]
    chapter = chapters.create({"title": "Earth's Atmosphere", "course_id": course["id"]})["data"]
    lesson_ids = [
        lessons.create(
            {
                "title": "Layers of the Atmosphere",
                "chapter_id": chapter["id"],
                "lesson_type": "content",
                "content": {"content": "The atmosphere is split into five layers."},
            }
        )["data"]["id"],
        lessons.create(
            {
                "title": "Weather vs Climate Quiz",
                "chapter_id": chapter["id"],
                "lesson_type": "quiz",
                "content": {
                    "questions": [
                        {"prompt": "Is a rainy Tuesday weather or climate?", "answer": "weather"},
                    ]
                },
            }
        )["data"]["id"],
    ]

    categories.change_status(category["id"], Status.PUBLISHED)
    courses.change_status(course["id"], Status.PUBLISHED)
    chapters.change_status(chapter["id"], Status.PUBLISHED)
    BulkService(session, get_level("lesson")).change_status_many(lesson_ids, Status.PUBLISHED)

    library = EntityService(session, get_level("resource_library")).create(
        {"title": "Climate Reading Room"}
    )["data"]
    EntityService(session, get_level("resource")).create(
        {
            "title": "NASA Atmosphere Overview",
            "library_id": library["id"],
            "resource_type": "pdf",
            "url": "https://climate.nasa.gov/",
            "page_count": 12,
        }
    )


__all__ = ["seed_dev_data"]
