"""Status propagation, soft-delete, restore and purge across the hierarchy."""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from courseware.db.models import Chapter, Course, Lesson, LessonContent
from courseware.errors import BusinessRuleViolation, NotFoundError
from courseware.lifecycle import Status, allowed_children_for
from courseware.services import CascadeExecutor, get_level

CHAPTER = get_level("chapter")
COURSE = get_level("course")
LESSON = get_level("lesson")
CATEGORY = get_level("category")


def assert_children_consistent(session) -> None:
    pairs = [(Course, "category"), (Chapter, "course"), (Lesson, "chapter")]
    for model, parent_attr in pairs:
        for child in session.scalars(select(model).where(model.deleted_at.is_(None))):
            parent = getattr(child, parent_attr)
            assert child.status in allowed_children_for(parent.status), (child, parent)


def test_publish_chapter_without_lessons_is_rejected(session, build) -> None:
    category = build.category()
    course = build.course(category["id"])
    chapter = build.chapter(course["id"])
    build.publish("category", category["id"])
    build.publish("course", course["id"])

    with pytest.raises(BusinessRuleViolation) as excinfo:
        CascadeExecutor(session).change_status(CHAPTER, chapter["id"], Status.PUBLISHED)

    assert excinfo.value.detail == "Cannot publish chapter without lessons"
    assert build.row("chapter", chapter["id"]).status is Status.DRAFT


def test_publish_empty_chapter_reports_missing_lessons_before_parent(session, build) -> None:
    category = build.category()
    course = build.course(category["id"])
    chapter = build.chapter(course["id"])

    with pytest.raises(BusinessRuleViolation) as excinfo:
        CascadeExecutor(session).change_status(CHAPTER, chapter["id"], Status.PUBLISHED)

    assert excinfo.value.detail == "Cannot publish chapter without lessons"


def test_publish_lesson_without_content_is_rejected(session, build) -> None:
    tree = build.published_tree(lessons=1)
    bare = build.lesson(tree["chapter"], title="Empty", body=None)

    with pytest.raises(BusinessRuleViolation, match="without content"):
        CascadeExecutor(session).change_status(LESSON, bare["id"], Status.PUBLISHED)


def test_publish_under_draft_parent_is_rejected(session, build) -> None:
    category = build.category()
    course = build.course(category["id"])
    build.chapter(course["id"])

    with pytest.raises(BusinessRuleViolation, match="while category is DRAFT"):
        CascadeExecutor(session).change_status(COURSE, course["id"], Status.PUBLISHED)


def test_deactivating_chapter_cascades_to_lessons(session, build) -> None:
    tree = build.published_tree(lessons=2)

    report = CascadeExecutor(session).change_status(CHAPTER, tree["chapter"], Status.INACTIVE)

    assert report.cascade_updated == {"lessons": 2}
    chapter = build.row("chapter", tree["chapter"])
    assert chapter.status is Status.INACTIVE
    assert chapter.inactivated_at is not None
    assert {build.row("lesson", lesson_id).status for lesson_id in tree["lessons"]} == {Status.INACTIVE}
    assert_children_consistent(session)


def test_archiving_course_coerces_every_level(session, build) -> None:
    tree = build.published_tree(lessons=2)
    executor = CascadeExecutor(session)
    executor.change_status(LESSON, tree["lessons"][0], Status.INACTIVE)

    report = executor.change_status(COURSE, tree["course"], Status.ARCHIVED)

    assert report.cascade_updated == {"chapters": 1, "lessons": 2}
    statuses = {build.row("lesson", lesson_id).status for lesson_id in tree["lessons"]}
    assert statuses == {Status.ARCHIVED}
    assert_children_consistent(session)


def test_status_timestamps_are_set_once(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)
    chapter = build.row("chapter", tree["chapter"])
    first_published = chapter.published_at

    executor.change_status(CHAPTER, tree["chapter"], Status.INACTIVE)
    executor.change_status(CHAPTER, tree["chapter"], Status.PUBLISHED)

    assert chapter.published_at == first_published
    assert chapter.inactivated_at is not None


def test_reactivating_parent_leaves_children_alone(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)
    executor.change_status(CHAPTER, tree["chapter"], Status.INACTIVE)

    report = executor.change_status(CHAPTER, tree["chapter"], Status.PUBLISHED)

    assert report.cascade_updated == {}
    assert build.row("lesson", tree["lessons"][0]).status is Status.INACTIVE


def test_delete_from_archived_parent_is_rejected(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)
    executor.change_status(CHAPTER, tree["chapter"], Status.ARCHIVED)

    with pytest.raises(BusinessRuleViolation, match="Parent is archived forever"):
        executor.soft_delete(LESSON, tree["lessons"][0])


def test_restore_into_archived_parent_is_rejected(session, build) -> None:
    tree = build.published_tree(lessons=2)
    executor = CascadeExecutor(session)
    executor.soft_delete(LESSON, tree["lessons"][0])
    executor.change_status(CHAPTER, tree["chapter"], Status.ARCHIVED)

    with pytest.raises(BusinessRuleViolation) as excinfo:
        executor.restore(LESSON, tree["lessons"][0])

    assert "Parent is archived forever" in excinfo.value.detail
    assert build.row("lesson", tree["lessons"][0]).deleted_at is not None


def test_restore_of_active_entity_reports_nothing_to_restore(session, build) -> None:
    tree = build.published_tree(lessons=1)

    with pytest.raises(BusinessRuleViolation, match="No need to restore"):
        CascadeExecutor(session).restore(LESSON, tree["lessons"][0])

    assert build.row("lesson", tree["lessons"][0]).deleted_at is None


def test_chapter_soft_delete_and_restore_round_trip(session, build) -> None:
    tree = build.published_tree(lessons=2)
    executor = CascadeExecutor(session)
    before = {
        lesson_id: (build.row("lesson", lesson_id).status, build.row("lesson", lesson_id).position)
        for lesson_id in tree["lessons"]
    }

    deleted = executor.soft_delete(CHAPTER, tree["chapter"])
    assert deleted.cascade_deleted == {"lessons": 2, "contents": 2}
    rows = [build.row("lesson", lesson_id) for lesson_id in tree["lessons"]]
    chapter = build.row("chapter", tree["chapter"])
    assert {row.deleted_at for row in rows} == {chapter.deleted_at}
    assert {row.delete_batch_id for row in rows} == {chapter.delete_batch_id}

    restored = executor.restore(CHAPTER, tree["chapter"])
    assert restored.cascade_restored == {"lessons": 2, "contents": 2}
    assert chapter.deleted_at is None
    after = {
        lesson_id: (build.row("lesson", lesson_id).status, build.row("lesson", lesson_id).position)
        for lesson_id in tree["lessons"]
    }
    assert after == before
    contents = session.scalars(select(LessonContent)).all()
    assert all(content.deleted_at is None for content in contents)


def test_lesson_payload_follows_its_lesson(session, build) -> None:
    tree = build.published_tree(lessons=2)
    executor = CascadeExecutor(session)
    target = tree["lessons"][0]

    assert executor.soft_delete(LESSON, target).cascade_deleted == {"contents": 1}
    payload = session.scalar(select(LessonContent).where(LessonContent.lesson_id == target))
    assert payload.delete_batch_id == build.row("lesson", target).delete_batch_id

    assert executor.restore(LESSON, target).cascade_restored == {"contents": 1}
    assert payload.deleted_at is None

    executor.change_status(CHAPTER, tree["chapter"], Status.ARCHIVED)
    assert executor.hard_delete(LESSON, target).cascade_deleted == {"contents": 1}
    assert session.scalar(select(LessonContent).where(LessonContent.lesson_id == target)) is None
    assert build.row("lesson", tree["lessons"][1]).position == 1


def test_deleted_at_stays_utc_aware_after_reload(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)
    executor.soft_delete(CHAPTER, tree["chapter"])
    stamped = build.row("chapter", tree["chapter"]).deleted_at

    session.expire_all()
    chapter = build.row("chapter", tree["chapter"])
    lesson = build.row("lesson", tree["lessons"][0])

    assert stamped.tzinfo is not None
    assert chapter.deleted_at == stamped
    assert lesson.deleted_at.utcoffset() == timedelta(0)
    assert chapter.published_at.tzinfo is not None


def test_restore_skips_children_deleted_in_an_earlier_event(session, build) -> None:
    tree = build.published_tree(lessons=2)
    executor = CascadeExecutor(session)
    executor.soft_delete(LESSON, tree["lessons"][0])
    executor.soft_delete(CHAPTER, tree["chapter"])

    report = executor.restore(CHAPTER, tree["chapter"])

    assert report.cascade_restored == {"lessons": 1, "contents": 1}
    assert build.row("lesson", tree["lessons"][0]).deleted_at is not None
    assert build.row("lesson", tree["lessons"][1]).deleted_at is None


def test_restore_requires_parent_to_be_active(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)
    executor.soft_delete(CHAPTER, tree["chapter"])

    with pytest.raises(BusinessRuleViolation, match="Restore the chapter first"):
        executor.restore(LESSON, tree["lessons"][0])


def test_category_with_courses_blocks_soft_delete_unless_cascading(session, build) -> None:
    tree = build.published_tree(lessons=1)
    executor = CascadeExecutor(session)

    with pytest.raises(BusinessRuleViolation, match="Has 1 existing courses"):
        executor.soft_delete(CATEGORY, tree["category"])

    report = executor.soft_delete(CATEGORY, tree["category"], cascade=True)
    assert report.cascade_deleted == {"courses": 1, "chapters": 1, "lessons": 1, "contents": 1}


def test_hard_delete_from_published_parent_is_rejected(session, build) -> None:
    tree = build.published_tree(lessons=1)

    with pytest.raises(BusinessRuleViolation, match="Archive the course first, or use soft delete"):
        CascadeExecutor(session).hard_delete(CHAPTER, tree["chapter"])


def test_hard_delete_purges_descendants_and_renumbers(session, build) -> None:
    category = build.category()
    course = build.course(category["id"])
    first = build.chapter(course["id"], title="First")
    second = build.chapter(course["id"], title="Second")
    third = build.chapter(course["id"], title="Third")
    build.lesson(first["id"])
    build.lesson(first["id"], title="Acceleration")

    report = CascadeExecutor(session).hard_delete(CHAPTER, first["id"])

    assert report.cascade_deleted == {"lessons": 2, "contents": 2}
    assert session.scalars(select(Lesson)).all() == []
    assert session.scalars(select(LessonContent)).all() == []
    assert build.row("chapter", second["id"]).position == 1
    assert build.row("chapter", third["id"]).position == 2


def test_unknown_entity_raises_not_found(session) -> None:
    with pytest.raises(NotFoundError):
        CascadeExecutor(session).change_status(CHAPTER, str(uuid.uuid4()), Status.PUBLISHED)


def test_child_status_invariant_holds_across_a_session(session, build) -> None:
    tree = build.published_tree(lessons=3)
    executor = CascadeExecutor(session)
    executor.change_status(LESSON, tree["lessons"][0], Status.ARCHIVED)
    executor.change_status(CHAPTER, tree["chapter"], Status.INACTIVE)
    assert_children_consistent(session)
    executor.change_status(CHAPTER, tree["chapter"], Status.PUBLISHED)
    executor.change_status(LESSON, tree["lessons"][1], Status.PUBLISHED)
    executor.change_status(COURSE, tree["course"], Status.ARCHIVED)
    assert_children_consistent(session)
