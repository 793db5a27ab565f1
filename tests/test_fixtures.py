from __future__ import annotations

from sqlalchemy import func, select

from courseware.db.fixtures import seed_dev_data
from courseware.db.models import Category, Lesson, Resource
from courseware.lifecycle import Status


def test_seed_dev_data_builds_published_course(session) -> None:
    seed_dev_data(session)

    lessons = session.scalars(select(Lesson)).all()
    assert len(lessons) == 2
    assert {lesson.status for lesson in lessons} == {Status.PUBLISHED}
    assert session.scalar(select(func.count()).select_from(Resource)) == 1


def test_seed_dev_data_is_idempotent(session) -> None:
    seed_dev_data(session)
    seed_dev_data(session)

    assert session.scalar(select(func.count()).select_from(Category)) == 1
