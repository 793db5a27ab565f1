"""Batch operations report per-id outcomes and validate before writing."""
from __future__ import annotations

import uuid

import pytest

from courseware.errors import BusinessRuleViolation, ValidationError
from courseware.lifecycle import Status
from courseware.services import BulkService, get_level

LESSON = get_level("lesson")
CHAPTER = get_level("chapter")
CATEGORY = get_level("category")


def test_change_status_many_reports_each_outcome(session, build) -> None:
    tree = build.published_tree(lessons=2)
    draft = build.lesson(tree["chapter"], title="Draft")
    empty = build.lesson(tree["chapter"], title="Empty", body=None)
    missing = str(uuid.uuid4())
    ids = [tree["lessons"][0], draft["id"], empty["id"], missing, draft["id"]]

    result = BulkService(session, LESSON).change_status_many(ids, Status.PUBLISHED)

    summary = result["data"]
    assert summary["requested"] == 4
    assert summary["successful"] == 1
    assert summary["skipped"] == 1
    assert summary["skipped_items"][0]["reason"] == "Lesson already has status PUBLISHED"
    assert summary["failed"] == 1
    assert summary["failures"][0] == {"id": empty["id"], "reason": "Cannot publish lesson without content"}
    assert summary["not_found_ids"] == [missing]
    assert build.row("lesson", draft["id"]).status is Status.PUBLISHED


def test_change_status_many_fails_when_nothing_can_change(session, build) -> None:
    tree = build.published_tree(lessons=1)
    empty = build.lesson(tree["chapter"], title="Empty", body=None)

    with pytest.raises(BusinessRuleViolation, match="No lessons could be processed"):
        BulkService(session, LESSON).change_status_many([empty["id"]], Status.PUBLISHED)


def test_change_status_many_reports_cascades(session, build) -> None:
    tree = build.published_tree(lessons=2)

    result = BulkService(session, CHAPTER).change_status_many([tree["chapter"]], "archived")

    assert result["meta"] == {"cascade_updated": {"lessons": 2}}


def test_ids_are_validated_before_any_work(session, build) -> None:
    service = BulkService(session, LESSON)

    with pytest.raises(ValidationError, match="not a valid UUID"):
        service.change_status_many(["nope"], Status.PUBLISHED)
    with pytest.raises(ValidationError, match="At least one id"):
        service.change_status_many([], Status.PUBLISHED)
    with pytest.raises(ValidationError, match="Too many ids"):
        service.soft_delete_many([str(uuid.uuid4()) for _ in range(101)])


def test_apply_positions_through_bulk_service(session, build) -> None:
    tree = build.published_tree(lessons=2)
    first, second = tree["lessons"]

    result = BulkService(session, LESSON).apply_positions(
        [{"id": first, "position": 2}, {"id": second, "position": 1}]
    )

    assert result["data"]["successful"] == 2
    assert build.row("lesson", first).position == 2


def test_soft_delete_many_shares_one_event(session, build) -> None:
    tree = build.published_tree(lessons=3)
    first, second, _ = tree["lessons"]

    result = BulkService(session, LESSON).soft_delete_many([first, second])

    assert result["data"]["successful"] == 2
    assert result["meta"] == {"cascade_deleted": {"contents": 2}}
    rows = [build.row("lesson", first), build.row("lesson", second)]
    assert rows[0].delete_batch_id == rows[1].delete_batch_id
    assert rows[0].deleted_at == rows[1].deleted_at


def test_soft_delete_many_skips_already_deleted(session, build) -> None:
    tree = build.published_tree(lessons=2)
    first, second = tree["lessons"]
    service = BulkService(session, LESSON)
    service.soft_delete_many([first])

    result = service.soft_delete_many([first, second])

    assert result["data"]["skipped_items"] == [{"id": first, "reason": "Lesson is already deleted"}]
    assert result["data"]["successful"] == 1


def test_soft_delete_many_respects_block_policy(session, build) -> None:
    tree = build.published_tree(lessons=1)
    empty = build.category(title="Empty")
    service = BulkService(session, CATEGORY)

    result = service.soft_delete_many([tree["category"], empty["id"]])

    assert result["data"]["successful"] == 1
    assert result["data"]["failures"][0]["reason"] == "Cannot delete category. Has 1 existing courses"

    cascaded = service.soft_delete_many([tree["category"]], cascade=True)
    assert cascaded["meta"] == {
        "cascade_deleted": {"courses": 1, "chapters": 1, "lessons": 1, "contents": 1}
    }


def test_restore_many_skips_active_rows(session, build) -> None:
    tree = build.published_tree(lessons=2)
    first, second = tree["lessons"]
    service = BulkService(session, LESSON)
    service.soft_delete_many([first])

    result = service.restore_many([first, second])

    summary = result["data"]
    assert summary["successful"] == 1
    assert summary["skipped_items"] == [{"id": second, "reason": "Lesson is not deleted. No need to restore."}]
    assert result["meta"] == {"cascade_restored": {"contents": 1}}
    assert build.row("lesson", first).deleted_at is None
