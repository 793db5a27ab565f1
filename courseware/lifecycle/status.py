"""Lifecycle statuses, actions and the static rule matrices.

Every hierarchical entity (category, course, chapter, lesson, resource library
and resource) moves through the same four statuses. The tables below are the
single source of truth for which actions and transitions are legal; the
validator and the impact analyzer only ever look them up.
"""
from __future__ import annotations

import enum
from typing import Final, Mapping


class Status(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    INACTIVE = "inactive"
    ARCHIVED = "archived"

    @property
    def label(self) -> str:
        return self.value.upper()


class Action(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    REORDER = "reorder"


D, P, I, A = Status.DRAFT, Status.PUBLISHED, Status.INACTIVE, Status.ARCHIVED
_ORDER: Final[tuple[Status, ...]] = (D, P, I, A)

ACTION_PERMISSIONS: Final[Mapping[Status, frozenset[Action]]] = {
    D: frozenset({Action.CREATE, Action.UPDATE, Action.DELETE, Action.REORDER}),
    P: frozenset({Action.CREATE, Action.UPDATE, Action.DELETE, Action.REORDER}),
    # No new children and no reordering while inactive.
    I: frozenset({Action.UPDATE, Action.DELETE, Action.RESTORE}),
    A: frozenset({Action.RESTORE}),
}

# Directly reachable statuses. Nothing ever goes back to DRAFT.
STATUS_TRANSITIONS: Final[Mapping[Status, frozenset[Status]]] = {
    D: frozenset({P}),
    P: frozenset({I, A}),
    I: frozenset({P}),
    A: frozenset({P}),
}

# parent status -> child status -> allowed
UPDATE_RULES: Final[Mapping[Status, Mapping[Status, bool]]] = {
    D: {D: True, P: False, I: False, A: False},
    P: {D: True, P: True, I: True, A: False},
    I: {D: False, P: False, I: True, A: False},
    A: {D: False, P: False, I: False, A: False},
}

DELETE_RULES: Final[Mapping[Status, Mapping[Status, bool]]] = {
    D: {D: True, P: False, I: False, A: False},
    P: {D: True, P: True, I: False, A: True},
    I: {D: False, P: False, I: False, A: False},
    A: {D: False, P: False, I: False, A: False},
}

# Whether the row is deleted at all is checked separately from these cells.
RESTORE_RULES: Final[Mapping[Status, Mapping[Status, bool]]] = {
    D: {D: True, P: False, I: False, A: False},
    P: {D: True, P: True, I: True, A: True},
    I: {D: False, P: False, I: False, A: False},
    A: {D: False, P: False, I: False, A: False},
}

ALLOWED_CHILDREN: Final[Mapping[Status, tuple[Status, ...]]] = {
    D: (D,),
    P: (D, P, I, A),
    I: (I, A),
    A: (A,),
}

# Child statuses that make a move of the parent into the key status illegal.
PARENT_STATUS_CHANGE_RULES: Final[Mapping[Status, tuple[tuple[Status, str], ...]]] = {
    D: (
        (P, 'Cannot set {parent} to DRAFT while having PUBLISHED {child}(s). '
            'Children cannot be "more advanced" than parent.'),
        (I, "Cannot set {parent} to DRAFT while having INACTIVE {child}(s). Invalid state combination."),
        (A, "Cannot set {parent} to DRAFT while having ARCHIVED {child}(s). Invalid state combination."),
    ),
    P: (),
    I: (),
    A: (),
}

CONTENT_VALIDATED_TRANSITIONS: Final[frozenset[tuple[Status, Status]]] = frozenset(
    {(D, P), (I, P), (A, P)}
)


def allowed_actions(status: Status) -> frozenset[Action]:
    return ACTION_PERMISSIONS.get(status, frozenset())


def allowed_children_for(parent_status: Status) -> tuple[Status, ...]:
    """Return the child statuses a parent in ``parent_status`` may contain."""
    return ALLOWED_CHILDREN.get(parent_status, ())


def allowed_transitions(current: Status, parent_status: Status | None = None) -> list[Status]:
    """Return the statuses reachable from ``current``, optionally under a parent."""
    targets = sorted(STATUS_TRANSITIONS.get(current, frozenset()), key=_ORDER.index)
    if parent_status is None:
        return targets
    tolerated = allowed_children_for(parent_status)
    return [target for target in targets if target in tolerated]


def requires_content_validation(current: Status, new: Status) -> bool:
    return (current, new) in CONTENT_VALIDATED_TRANSITIONS


__all__ = [
    "ACTION_PERMISSIONS",
    "ALLOWED_CHILDREN",
    "Action",
    "CONTENT_VALIDATED_TRANSITIONS",
    "DELETE_RULES",
    "PARENT_STATUS_CHANGE_RULES",
    "RESTORE_RULES",
    "STATUS_TRANSITIONS",
    "Status",
    "UPDATE_RULES",
    "allowed_actions",
    "allowed_children_for",
    "allowed_transitions",
    "requires_content_validation",
]
