"""Parent-aware action and status transition checks.

Nothing in this module raises for a denied request: every check returns a
:class:`ValidationResult` so callers can decide whether to abort, skip or
report the outcome.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .status import (
    DELETE_RULES,
    PARENT_STATUS_CHANGE_RULES,
    RESTORE_RULES,
    STATUS_TRANSITIONS,
    UPDATE_RULES,
    Action,
    Status,
    allowed_actions,
    allowed_children_for,
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    allowed: bool
    reason: str | None = None
    # True when the request would not change anything.
    noop: bool = False

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def deny(cls, reason: str, *, noop: bool = False) -> "ValidationResult":
        return cls(False, reason, noop)


def validate_action(
    parent_status: Status,
    entity_status: Status | None,
    action: Action,
    *,
    entity_name: str = "Entity",
    parent_name: str = "Parent",
    is_deleted: bool | None = None,
) -> ValidationResult:
    """Decide whether ``action`` may be applied to a child of ``parent_status``.

    ``entity_status`` is ``None`` for CREATE. For RESTORE, passing
    ``is_deleted=False`` reports that there is nothing to restore.
    """
    entity = entity_name.lower()
    parent = parent_name.lower()

    if action is Action.CREATE:
        return _validate_create(parent_status, entity, parent)
    if action is Action.REORDER:
        return _validate_reorder(parent_status, entity, parent)

    if entity_status is None:
        return ValidationResult.deny(f"{entity_name} status is required for {action.value} action")

    if action is Action.UPDATE:
        return _validate_update(parent_status, entity_status, entity, parent)
    if action is Action.DELETE:
        return _validate_delete(parent_status, entity_status, entity, parent)
    if action is Action.RESTORE:
        if is_deleted is False:
            return ValidationResult.deny(f"{entity_name} is not deleted. No need to restore.", noop=True)
        return _validate_restore(parent_status, entity_status, entity, parent)

    return ValidationResult.deny(f"Unknown action: {action}")


def _validate_create(parent_status: Status, entity: str, parent: str) -> ValidationResult:
    if Action.CREATE in allowed_actions(parent_status):
        return ValidationResult.ok()
    if parent_status is Status.ARCHIVED:
        return ValidationResult.deny(f"Cannot create {entity} in archived {parent}")
    if parent_status is Status.INACTIVE:
        return ValidationResult.deny(
            f"Cannot create {entity} in inactive {parent}. Reactivate the {parent} first."
        )
    return ValidationResult.deny(f"Cannot create {entity} in {parent_status.value} {parent}")


def _validate_reorder(parent_status: Status, entity: str, parent: str) -> ValidationResult:
    if Action.REORDER in allowed_actions(parent_status):
        return ValidationResult.ok()
    if parent_status is Status.ARCHIVED:
        return ValidationResult.deny(f"Cannot reorder {entity} in archived {parent}")
    if parent_status is Status.INACTIVE:
        return ValidationResult.deny(f"Cannot reorder {entity} in inactive {parent}. Reactivate it first.")
    return ValidationResult.deny(f"Cannot reorder {entity} in {parent_status.value} {parent}")


def _validate_update(parent_status: Status, child: Status, entity: str, parent: str) -> ValidationResult:
    if UPDATE_RULES[parent_status][child]:
        return ValidationResult.ok()

    if parent_status is Status.DRAFT and child is Status.PUBLISHED:
        return ValidationResult.deny(
            f'Cannot update PUBLISHED {entity} in DRAFT {parent}. Child cannot be "more advanced" than parent.'
        )
    if parent_status is Status.DRAFT:
        return ValidationResult.deny(f"Invalid state: {child.label} {entity} cannot exist in DRAFT {parent}")
    if parent_status is Status.PUBLISHED and child is Status.ARCHIVED:
        return ValidationResult.deny(f"Cannot update archived {entity}. Restore it first.")
    if parent_status is Status.INACTIVE:
        return ValidationResult.deny(
            f"Cannot update {child.value} {entity} in inactive {parent}. Parent is closed."
        )
    if parent_status is Status.ARCHIVED:
        return ValidationResult.deny(
            f"Cannot update {entity} in archived {parent}. Parent is archived forever."
        )
    return ValidationResult.deny(f"Cannot update {child.value} {entity} in {parent_status.value} {parent}")


def _validate_delete(parent_status: Status, child: Status, entity: str, parent: str) -> ValidationResult:
    if DELETE_RULES[parent_status][child]:
        return ValidationResult.ok()

    if parent_status is Status.DRAFT and child is Status.PUBLISHED:
        return ValidationResult.deny(
            f'Cannot delete PUBLISHED {entity} from DRAFT {parent}. Child "lives" more than parent (illogical state).'
        )
    if parent_status is Status.DRAFT:
        return ValidationResult.deny(f"Invalid state: {child.value} {entity} cannot exist in DRAFT {parent}")
    if parent_status is Status.PUBLISHED and child is Status.INACTIVE:
        return ValidationResult.deny(
            f"Cannot delete INACTIVE {entity}. Use RESTORE action instead (reactivate it first)."
        )
    if parent_status is Status.INACTIVE:
        if child is Status.INACTIVE:
            return ValidationResult.deny(
                f"Cannot delete INACTIVE {entity} from INACTIVE {parent}. Should RESTORE first (recommended)."
            )
        return ValidationResult.deny(f"Cannot delete {entity} from inactive {parent}. Parent is closed.")
    if parent_status is Status.ARCHIVED:
        return ValidationResult.deny(
            f"Cannot delete {entity} from archived {parent}. Parent is archived forever."
        )
    return ValidationResult.deny(f"Cannot delete {child.value} {entity} from {parent_status.value} {parent}")


def _validate_restore(parent_status: Status, child: Status, entity: str, parent: str) -> ValidationResult:
    if RESTORE_RULES[parent_status][child]:
        return ValidationResult.ok()

    if parent_status is Status.DRAFT:
        return ValidationResult.deny(
            f'Cannot restore {child.value} {entity} to DRAFT {parent}. Child cannot "live" more than parent.'
        )
    if parent_status is Status.INACTIVE:
        return ValidationResult.deny(
            f"Cannot restore {entity} to inactive {parent}. Parent is closed. Reactivate parent first."
        )
    if parent_status is Status.ARCHIVED:
        return ValidationResult.deny(
            f"Cannot restore {entity} to archived {parent}. Parent is archived forever. Restore parent first."
        )
    return ValidationResult.deny(f"Cannot restore {child.value} {entity} to {parent_status.value} {parent}")


def validate_status_transition(
    current: Status,
    target: Status,
    *,
    parent_status: Status | None = None,
    entity_name: str = "Entity",
    parent_name: str = "Parent",
) -> ValidationResult:
    """Check a direct status change, optionally against the parent's status."""
    entity = entity_name.lower()

    if current is target:
        return ValidationResult.deny(f"{entity_name} already has status {target.label}", noop=True)
    if target is Status.DRAFT:
        return ValidationResult.deny(f"Cannot revert {entity} to DRAFT once it has left DRAFT")
    if target not in STATUS_TRANSITIONS.get(current, frozenset()):
        return ValidationResult.deny(f"Cannot change {entity} status from {current.label} to {target.label}")
    if parent_status is not None and target not in allowed_children_for(parent_status):
        return ValidationResult.deny(
            f"Cannot set {entity} to {target.label} while {parent_name.lower()} is {parent_status.label}"
        )
    return ValidationResult.ok()


def validate_parent_change_with_children(
    current: Status,
    target: Status,
    children_statuses: Iterable[Status],
    *,
    parent_name: str = "Parent",
    child_name: str = "children",
) -> ValidationResult:
    """Reject parent moves that no child coercion could make consistent."""
    if current is target:
        return ValidationResult.ok()
    present = set(children_statuses)
    for blocked, template in PARENT_STATUS_CHANGE_RULES.get(target, ()):
        if blocked in present:
            return ValidationResult.deny(template.format(parent=parent_name, child=child_name))
    return ValidationResult.ok()


__all__ = [
    "ValidationResult",
    "validate_action",
    "validate_parent_change_with_children",
    "validate_status_transition",
]
