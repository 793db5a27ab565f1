"""Sibling ordering: next slot, collision checks, batch repositioning."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from sqlalchemy.orm import Session

from courseware.errors import BusinessRuleViolation, ConflictError, NotFoundError, ValidationError
from courseware.lifecycle import Action, validate_action

from .hierarchy import Level
from .repository import EntityRepository

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PositionEntry:
    id: str
    position: int


def next_position(repo: EntityRepository, scope_id: str | None) -> int:
    return repo.max_position(scope_id) + 1


def ensure_position_free(
    repo: EntityRepository,
    scope_id: str | None,
    position: int,
    *,
    exclude_id: str | None = None,
) -> None:
    if position < 1:
        raise ValidationError(f"Position must be at least 1, got {position}")
    holder = repo.position_holder(scope_id, position)
    if holder is not None and holder.id != exclude_id:
        raise ConflictError(
            f"Position {position} is already taken",
            detail=f"{repo.level.name} with ID {holder.id} already occupies position {position}",
        )


def _write_positions(session: Session, targets: Sequence[tuple[Any, int]]) -> None:
    """Move rows to their targets without tripping the scope unique constraint."""
    if not targets:
        return
    for offset, (entity, _) in enumerate(targets, start=1):
        entity.position = -offset
    session.flush()
    for entity, position in targets:
        entity.position = position
    session.flush()


def _check_entries(entries: Sequence[PositionEntry]) -> None:
    if not entries:
        raise ValidationError("At least one position entry is required")
    duplicate_ids = [key for key, count in Counter(entry.id for entry in entries).items() if count > 1]
    if duplicate_ids:
        raise ValidationError(f"Duplicate ids detected in request: {', '.join(duplicate_ids)}")
    positions = [entry.position for entry in entries]
    if len(set(positions)) != len(positions):
        raise ValidationError(
            "Duplicate positions detected in request. Each item must have a unique position."
        )
    invalid = [position for position in positions if position < 1]
    if invalid:
        raise ValidationError(f"Positions must be at least 1, got {invalid}")


def apply_positions(session: Session, level: Level, entries: Iterable[PositionEntry]) -> list[Any]:
    """Validate a whole reposition batch, then write it in two phases."""
    entries = list(entries)
    _check_entries(entries)

    repo = EntityRepository(session, level)
    ids = [entry.id for entry in entries]
    rows = {row.id: row for row in repo.find_many(ids, lock=True)}
    missing = [entity_id for entity_id in ids if entity_id not in rows]
    if missing:
        raise NotFoundError(
            f"{level.name} not found",
            detail=f"{level.name} ids not found: {', '.join(missing)}",
        )

    scopes = {level.scope_of(row) for row in rows.values()}
    if len(scopes) > 1:
        raise ValidationError(f"All {level.plural} must belong to the same parent")
    (scope_id,) = scopes

    if not level.is_root:
        parent = EntityRepository(session, level.parent).find_by_id(scope_id, include_deleted=True, lock=True)
        if parent is None:
            raise NotFoundError(f"{level.parent.name} with ID {scope_id} not found")
        check = validate_action(
            parent.status,
            None,
            Action.REORDER,
            entity_name=level.plural,
            parent_name=level.parent.name,
        )
        if not check.allowed:
            raise BusinessRuleViolation(check.reason)

    sibling_count = repo.count_by_scope(scope_id, include_deleted=True)
    out_of_range = [entry.position for entry in entries if entry.position > sibling_count]
    if out_of_range:
        raise ValidationError(
            f"Positions {out_of_range} are out of range. Valid range is 1 to {sibling_count}."
        )

    moving = set(ids)
    occupied = {
        row.position: row.id
        for row in repo.find_many(scope_id=scope_id, include_deleted=True)
        if row.id not in moving
    }
    conflicts = [entry for entry in entries if entry.position in occupied]
    if conflicts:
        details = ", ".join(
            f"position {entry.position} is held by {occupied[entry.position]}" for entry in conflicts
        )
        raise ValidationError("Position conflict detected", detail=f"Position conflict detected: {details}")

    ordered = [(rows[entry.id], entry.position) for entry in entries]
    _write_positions(session, ordered)
    LOGGER.info("Repositioned %d %s in scope %s", len(ordered), level.plural, scope_id)
    return [row for row, _ in ordered]


def renumber_scope(session: Session, level: Level, scope_id: str | None) -> None:
    """Close gaps so the scope reads 1..n in its current order."""
    repo = EntityRepository(session, level)
    rows = repo.find_many(scope_id=scope_id, include_deleted=True)
    targets = [(row, index) for index, row in enumerate(rows, start=1) if row.position != index]
    _write_positions(session, targets)


__all__ = ["PositionEntry", "apply_positions", "ensure_position_free", "next_position", "renumber_scope"]
