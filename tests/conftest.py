"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Iterator

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("COURSEWARE_DATA_DIR", tempfile.mkdtemp(prefix="courseware-tests-"))

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from courseware.db import Base
from courseware.lifecycle import Status
from courseware.services import EntityService, get_level


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    from courseware.db import models  # noqa: F401

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine) -> Iterator[Session]:
    TestingSession = sessionmaker(bind=engine, future=True, autoflush=False, expire_on_commit=False)
    with TestingSession() as session:
        yield session
        session.rollback()


class Builder:
    """Creates hierarchy rows through the service layer."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def service(self, key: str) -> EntityService:
        return EntityService(self.session, get_level(key))

    def create(self, key: str, **fields: Any) -> dict[str, Any]:
        return self.service(key).create(fields)["data"]

    def category(self, title: str = "Science", **fields: Any) -> dict[str, Any]:
        return self.create("category", title=title, **fields)

    def course(self, category_id: str, title: str = "Physics", **fields: Any) -> dict[str, Any]:
        return self.create("course", title=title, category_id=category_id, **fields)

    def chapter(self, course_id: str, title: str = "Motion", **fields: Any) -> dict[str, Any]:
        return self.create("chapter", title=title, course_id=course_id, **fields)

    def lesson(
        self,
        chapter_id: str,
        title: str = "Velocity",
        body: str | None = "Distance over time.",
        **fields: Any,
    ) -> dict[str, Any]:
        if body is not None:
            fields.setdefault("content", {"content": body})
        return self.create("lesson", title=title, chapter_id=chapter_id, **fields)

    def publish(self, key: str, entity_id: str) -> dict[str, Any]:
        return self.service(key).change_status(entity_id, Status.PUBLISHED)

    def row(self, key: str, entity_id: str) -> Any:
        return self.session.get(get_level(key).model, entity_id)

    def published_tree(self, lessons: int = 2) -> dict[str, Any]:
        """Category, course and chapter with ``lessons`` lessons, all published."""
        category = self.category()
        course = self.course(category["id"])
        chapter = self.chapter(course["id"])
        lesson_ids = [self.lesson(chapter["id"], title=f"Lesson {index}")["id"] for index in range(1, lessons + 1)]
        self.publish("category", category["id"])
        self.publish("course", course["id"])
        self.publish("chapter", chapter["id"])
        for lesson_id in lesson_ids:
            self.publish("lesson", lesson_id)
        return {
            "category": category["id"],
            "course": course["id"],
            "chapter": chapter["id"],
            "lessons": lesson_ids,
        }


@pytest.fixture()
def build(session: Session) -> Builder:
    return Builder(session)
