"""Checks for the static status matrices, the validator and impact analysis."""
from __future__ import annotations

import pytest

from courseware.lifecycle import (
    Action,
    Status,
    allowed_actions,
    allowed_children_for,
    allowed_transitions,
    analyze_parent_change,
    requires_content_validation,
    validate_action,
    validate_parent_change_with_children,
    validate_status_transition,
)

D, P, I, A = Status.DRAFT, Status.PUBLISHED, Status.INACTIVE, Status.ARCHIVED


def test_action_permissions_close_inactive_and_archived_parents() -> None:
    assert Action.CREATE in allowed_actions(D)
    assert Action.REORDER in allowed_actions(P)
    assert Action.CREATE not in allowed_actions(I)
    assert allowed_actions(A) == frozenset({Action.RESTORE})


def test_allowed_children_whitelists() -> None:
    assert allowed_children_for(D) == (D,)
    assert set(allowed_children_for(P)) == {D, P, I, A}
    assert allowed_children_for(I) == (I, A)
    assert allowed_children_for(A) == (A,)


def test_allowed_transitions_respect_parent() -> None:
    assert allowed_transitions(P) == [I, A]
    assert allowed_transitions(D, parent_status=D) == []
    assert allowed_transitions(I, parent_status=P) == [P]
    assert allowed_transitions(P, parent_status=I) == [I, A]


def test_content_validation_applies_to_every_publish() -> None:
    assert requires_content_validation(D, P)
    assert requires_content_validation(A, P)
    assert not requires_content_validation(P, I)


@pytest.mark.parametrize(
    ("parent", "child", "allowed"),
    [
        (D, D, True),
        (D, P, False),
        (P, D, True),
        (P, P, True),
        (P, I, False),
        (P, A, True),
        (I, I, False),
        (A, A, False),
    ],
)
def test_delete_matrix(parent: Status, child: Status, allowed: bool) -> None:
    assert validate_action(parent, child, Action.DELETE).allowed is allowed


def test_delete_reasons_name_the_rule() -> None:
    archived = validate_action(A, A, Action.DELETE, entity_name="Lesson", parent_name="Chapter")
    assert archived.reason == "Cannot delete lesson from archived chapter. Parent is archived forever."

    inactive_child = validate_action(P, I, Action.DELETE, entity_name="Lesson", parent_name="Chapter")
    assert "Use RESTORE action instead" in inactive_child.reason

    ahead = validate_action(D, P, Action.DELETE, entity_name="Lesson", parent_name="Chapter")
    assert "illogical state" in ahead.reason


def test_update_matrix_and_reasons() -> None:
    assert validate_action(P, I, Action.UPDATE).allowed
    assert validate_action(I, I, Action.UPDATE).allowed
    archived_child = validate_action(P, A, Action.UPDATE, entity_name="Course", parent_name="Category")
    assert archived_child.reason == "Cannot update archived course. Restore it first."
    closed = validate_action(I, P, Action.UPDATE, entity_name="Course", parent_name="Category")
    assert "Parent is closed" in closed.reason


def test_restore_matrix_and_nothing_to_restore() -> None:
    assert validate_action(P, A, Action.RESTORE, is_deleted=True).allowed
    assert validate_action(D, D, Action.RESTORE, is_deleted=True).allowed
    assert not validate_action(D, P, Action.RESTORE, is_deleted=True).allowed

    archived = validate_action(A, P, Action.RESTORE, entity_name="Lesson", parent_name="Chapter", is_deleted=True)
    assert archived.reason == (
        "Cannot restore lesson to archived chapter. Parent is archived forever. Restore parent first."
    )

    nothing = validate_action(P, P, Action.RESTORE, entity_name="Lesson", is_deleted=False)
    assert not nothing.allowed
    assert nothing.noop
    assert nothing.reason == "Lesson is not deleted. No need to restore."


def test_create_and_reorder_blocked_under_closed_parents() -> None:
    inactive = validate_action(I, None, Action.CREATE, entity_name="Chapter", parent_name="Course")
    assert inactive.reason == "Cannot create chapter in inactive course. Reactivate the course first."
    assert not validate_action(A, None, Action.CREATE).allowed
    assert validate_action(D, None, Action.CREATE).allowed
    assert not validate_action(A, None, Action.REORDER).allowed


def test_missing_status_is_rejected() -> None:
    result = validate_action(P, None, Action.UPDATE, entity_name="Lesson")
    assert result.reason == "Lesson status is required for update action"


def test_status_transition_checks() -> None:
    same = validate_status_transition(P, P, entity_name="Chapter")
    assert same.noop and same.reason == "Chapter already has status PUBLISHED"

    revert = validate_status_transition(P, D, entity_name="Chapter")
    assert revert.reason == "Cannot revert chapter to DRAFT once it has left DRAFT"

    skip = validate_status_transition(D, A, entity_name="Chapter")
    assert skip.reason == "Cannot change chapter status from DRAFT to ARCHIVED"

    under_draft = validate_status_transition(D, P, parent_status=D, entity_name="Chapter", parent_name="Course")
    assert under_draft.reason == "Cannot set chapter to PUBLISHED while course is DRAFT"

    assert validate_status_transition(A, P, parent_status=P).allowed


def test_parent_change_with_children_blocks_only_draft() -> None:
    blocked = validate_parent_change_with_children(
        P, D, [D, P], parent_name="Course", child_name="chapter"
    )
    assert not blocked.allowed
    assert "PUBLISHED chapter(s)" in blocked.reason
    assert validate_parent_change_with_children(P, I, [P, D]).allowed


def test_impact_summary_counts_in_first_seen_order() -> None:
    impact = analyze_parent_change(I, [P, D, P, I], parent_name="Chapter", child_name="lessons")
    assert impact.will_make_inaccessible
    assert impact.affected_summary == "2 PUBLISHED, 1 DRAFT"
    assert impact.affected_counts == {P: 2, D: 1}
    assert impact.recommendation == (
        "Deactivate 2 PUBLISHED, 1 DRAFT lessons first, or they will become inaccessible to users."
    )


def test_impact_recommendations_per_target() -> None:
    archive = analyze_parent_change(A, [I], child_name="lessons")
    assert archive.recommendation == "Archive 1 INACTIVE lessons first to maintain clean state."

    draft = analyze_parent_change(D, [P], child_name="lessons")
    assert draft.recommendation.startswith("Cannot revert to DRAFT with 1 PUBLISHED lessons")

    safe = analyze_parent_change(P, [D, A], parent_name="Chapter")
    assert not safe.will_make_inaccessible
    assert safe.recommendation == "Safe to change chapter to PUBLISHED."
