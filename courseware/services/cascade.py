"""Status, soft-delete, restore and purge operations that reach descendants.

Every public method works inside the caller's session transaction. Checks run
before the first write, so an error leaves nothing half-applied once the
session scope rolls back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy.orm import Session

from courseware.db.models.mixins import new_id, utcnow
from courseware.errors import BusinessRuleViolation, NotFoundError
from courseware.lifecycle import (
    Action,
    Status,
    ValidationResult,
    allowed_children_for,
    analyze_parent_change,
    requires_content_validation,
    validate_action,
    validate_parent_change_with_children,
    validate_status_transition,
)

from . import lesson_types
from .hierarchy import DeletePolicy, Level
from .positions import renumber_scope
from .repository import EntityRepository

LOGGER = logging.getLogger(__name__)

PAYLOAD_KEY = "contents"


@dataclass(slots=True)
class CascadeReport:
    entity: Any
    cascade_updated: dict[str, int] = field(default_factory=dict)
    cascade_deleted: dict[str, int] = field(default_factory=dict)
    cascade_restored: dict[str, int] = field(default_factory=dict)

    def as_meta(self) -> dict[str, dict[str, int]]:
        meta = {
            "cascade_updated": self.cascade_updated,
            "cascade_deleted": self.cascade_deleted,
            "cascade_restored": self.cascade_restored,
        }
        return {key: value for key, value in meta.items() if value}


def _bump(counts: dict[str, int], key: str, amount: int) -> None:
    if amount:
        counts[key] = counts.get(key, 0) + amount


class CascadeExecutor:
    def __init__(self, session: Session) -> None:
        self.session = session

    def repo(self, level: Level) -> EntityRepository:
        return EntityRepository(self.session, level)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def load(self, level: Level, entity_id: str, *, include_deleted: bool = False) -> Any:
        entity = self.repo(level).find_by_id(entity_id, include_deleted=include_deleted, lock=True)
        if entity is None:
            raise NotFoundError(f"{level.name} with ID {entity_id} not found")
        return entity

    def parent_of(self, level: Level, entity: Any) -> Any | None:
        """Lock and return the parent row, soft-deleted or not."""
        if level.is_root:
            return None
        parent_id = level.scope_of(entity)
        parent = self.repo(level.parent).find_by_id(parent_id, include_deleted=True, lock=True)
        if parent is None:
            raise NotFoundError(f"{level.parent.name} with ID {parent_id} not found")
        return parent

    def active_children(self, level: Level, scope_ids: Sequence[str]) -> Sequence[Any]:
        if level.child is None or not scope_ids:
            return []
        return self.repo(level.child).find_many(scope_ids=scope_ids, lock=True)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def check_status_change(
        self,
        level: Level,
        entity: Any,
        target: Status,
        parent: Any | None = None,
    ) -> ValidationResult:
        if parent is None and not level.is_root:
            parent = self.parent_of(level, entity)
        parent_name = level.parent.name if level.parent else "Parent"
        children = self.active_children(level, [entity.id])
        child_statuses = [child.status for child in children]
        child_name = level.child.plural if level.child else "children"

        if requires_content_validation(entity.status, target):
            if level.publish_requires_children and not children:
                return ValidationResult.deny(f"Cannot publish {level.name.lower()} without {child_name}")
            if level.has_payload and not lesson_types.strategy_for(entity.lesson_type).has_content(
                self.session, entity
            ):
                return ValidationResult.deny(f"Cannot publish {level.name.lower()} without content")

        result = validate_status_transition(
            entity.status,
            target,
            parent_status=parent.status if parent is not None else None,
            entity_name=level.name,
            parent_name=parent_name,
        )
        if not result.allowed:
            return result

        result = validate_parent_change_with_children(
            entity.status, target, child_statuses, parent_name=level.name, child_name=child_name
        )
        if not result.allowed:
            return result

        impact = analyze_parent_change(target, child_statuses, parent_name=level.name, child_name=child_name)
        if impact.will_make_inaccessible and target is Status.DRAFT:
            return ValidationResult.deny(impact.recommendation)
        if impact.will_make_inaccessible:
            LOGGER.info(
                "%s %s -> %s coerces %s %s",
                level.name,
                entity.id,
                target.label,
                impact.affected_summary,
                child_name,
            )
        return ValidationResult.ok()

    def apply_status_change(self, level: Level, entity: Any, target: Status, counts: dict[str, int]) -> None:
        now = utcnow()
        entity.mark_status(target, now)
        self._coerce_descendants(level, [entity.id], target, now, counts)
        self.session.flush()

    def _coerce_descendants(
        self,
        level: Level,
        scope_ids: list[str],
        parent_status: Status,
        now: datetime,
        counts: dict[str, int],
    ) -> None:
        child_level = level.child
        if child_level is None:
            return
        tolerated = allowed_children_for(parent_status)
        coerced = []
        for child in self.active_children(level, scope_ids):
            if child.status in tolerated:
                continue
            child.mark_status(parent_status, now)
            coerced.append(child.id)
        _bump(counts, child_level.plural, len(coerced))
        if coerced:
            self._coerce_descendants(child_level, coerced, parent_status, now, counts)

    def change_status(self, level: Level, entity_id: str, target: Status) -> CascadeReport:
        entity = self.load(level, entity_id)
        result = self.check_status_change(level, entity, target)
        if not result.allowed:
            raise BusinessRuleViolation(result.reason)
        report = CascadeReport(entity)
        self.apply_status_change(level, entity, target, report.cascade_updated)
        return report

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def check_soft_delete(
        self,
        level: Level,
        entity: Any,
        cascade: bool | None = None,
        parent: Any | None = None,
    ) -> ValidationResult:
        if parent is None and not level.is_root:
            parent = self.parent_of(level, entity)
        if parent is not None:
            result = validate_action(
                parent.status,
                entity.status,
                Action.DELETE,
                entity_name=level.name,
                parent_name=level.parent.name,
            )
            if not result.allowed:
                return result

        do_cascade = cascade if cascade is not None else level.delete_policy is DeletePolicy.CASCADE
        if not do_cascade and level.child is not None:
            remaining = len(self.active_children(level, [entity.id]))
            if remaining:
                return ValidationResult.deny(
                    f"Cannot delete {level.name.lower()}. Has {remaining} existing {level.child.plural}"
                )
        return ValidationResult.ok()

    def _collect(self, level: Level, ids: list[str], **filters: Any) -> list[tuple[Level, list[str]]]:
        """Walk down from ``ids`` and return (level, ids) pairs, outermost first."""
        collected: list[tuple[Level, list[str]]] = []
        current_level, current_ids = level, ids
        while current_level.child is not None and current_ids:
            child_level = current_level.child
            rows = self.repo(child_level).find_many(scope_ids=current_ids, lock=True, **filters)
            current_ids = [row.id for row in rows]
            if current_ids:
                collected.append((child_level, current_ids))
            current_level = child_level
        return collected

    def apply_soft_delete(
        self,
        level: Level,
        entities: Sequence[Any],
        counts: dict[str, int],
        *,
        deleted_at: datetime | None = None,
        batch_id: str | None = None,
    ) -> None:
        deleted_at = deleted_at or utcnow()
        batch_id = batch_id or new_id()
        ids = [entity.id for entity in entities]
        plan = [(level, ids), *self._collect(level, ids)]
        for plan_level, plan_ids in reversed(plan):
            if plan_level.has_payload and plan_level is level:
                for entity in entities:
                    strategy = lesson_types.strategy_for(entity.lesson_type)
                    removed = strategy.cleanup_on_delete(self.session, entity, deleted_at, batch_id)
                    _bump(counts, PAYLOAD_KEY, removed)
            elif plan_level.has_payload:
                removed = lesson_types.cleanup_on_delete(self.session, plan_ids, deleted_at, batch_id)
                _bump(counts, PAYLOAD_KEY, removed)
            deleted = self.repo(plan_level).soft_delete(plan_ids, deleted_at, batch_id)
            if plan_level is not level:
                _bump(counts, plan_level.plural, deleted)
        self.session.flush()

    def soft_delete(self, level: Level, entity_id: str, cascade: bool | None = None) -> CascadeReport:
        entity = self.load(level, entity_id)
        result = self.check_soft_delete(level, entity, cascade)
        if not result.allowed:
            raise BusinessRuleViolation(result.reason)
        report = CascadeReport(entity)
        self.apply_soft_delete(level, [entity], report.cascade_deleted)
        return report

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def check_restore(self, level: Level, entity: Any, parent: Any | None = None) -> ValidationResult:
        if not entity.is_deleted:
            return ValidationResult.deny(f"{level.name} is not deleted. No need to restore.", noop=True)
        if parent is None and not level.is_root:
            parent = self.parent_of(level, entity)
        if parent is None:
            return ValidationResult.ok()
        if parent.is_deleted:
            parent_name = level.parent.name.lower()
            return ValidationResult.deny(
                f"Cannot restore {level.name.lower()} while its {parent_name} is deleted. "
                f"Restore the {parent_name} first."
            )
        return validate_action(
            parent.status,
            entity.status,
            Action.RESTORE,
            entity_name=level.name,
            parent_name=level.parent.name,
            is_deleted=True,
        )

    def apply_restore(self, level: Level, entity: Any, counts: dict[str, int]) -> None:
        batch_id = entity.delete_batch_id
        if batch_id is not None:
            plan = self._collect(level, [entity.id], only_deleted=True, batch_id=batch_id)
            for plan_level, plan_ids in plan:
                _bump(counts, plan_level.plural, self.repo(plan_level).restore(plan_ids))
                if plan_level.has_payload:
                    _bump(counts, PAYLOAD_KEY, lesson_types.restore_payloads(self.session, plan_ids, batch_id))
            if level.has_payload:
                strategy = lesson_types.strategy_for(entity.lesson_type)
                _bump(counts, PAYLOAD_KEY, strategy.restore(self.session, entity, batch_id))
        self.repo(level).restore([entity.id])
        self.session.flush()

    def restore(self, level: Level, entity_id: str) -> CascadeReport:
        entity = self.load(level, entity_id, include_deleted=True)
        result = self.check_restore(level, entity)
        if not result.allowed:
            raise BusinessRuleViolation(result.reason)
        report = CascadeReport(entity)
        self.apply_restore(level, entity, report.cascade_restored)
        return report

    # ------------------------------------------------------------------
    # Hard delete
    # ------------------------------------------------------------------

    def hard_delete(self, level: Level, entity_id: str) -> CascadeReport:
        entity = self.load(level, entity_id, include_deleted=True)
        parent = self.parent_of(level, entity)
        if parent is not None and parent.status is Status.PUBLISHED:
            entity_name = level.name.lower()
            parent_name = level.parent.name.lower()
            raise BusinessRuleViolation(
                f"Cannot permanently delete {entity_name} from published {parent_name}. "
                f"Archive the {parent_name} first, or use soft delete."
            )

        report = CascadeReport(entity)
        scope_id = level.scope_of(entity)
        plan = [(level, [entity.id]), *self._collect(level, [entity.id], include_deleted=True)]
        for plan_level, plan_ids in reversed(plan):
            if plan_level.has_payload and plan_level is level:
                strategy = lesson_types.strategy_for(entity.lesson_type)
                _bump(report.cascade_deleted, PAYLOAD_KEY, strategy.cleanup_on_hard_delete(self.session, entity))
            elif plan_level.has_payload:
                _bump(
                    report.cascade_deleted,
                    PAYLOAD_KEY,
                    lesson_types.cleanup_on_hard_delete(self.session, plan_ids),
                )
            removed = self.repo(plan_level).hard_delete(plan_ids)
            if plan_level is not level:
                _bump(report.cascade_deleted, plan_level.plural, removed)
        self.session.flush()
        renumber_scope(self.session, level, scope_id)
        LOGGER.info("Purged %s %s and renumbered scope %s", level.name, entity.id, scope_id)
        return report


__all__ = ["CascadeExecutor", "CascadeReport"]
