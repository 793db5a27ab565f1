"""Batch status, position, soft-delete and restore operations."""
from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterable, Iterator, Mapping

from sqlalchemy.orm import Session

from courseware.config import BULK_MAX_ITEMS
from courseware.db.models.mixins import new_id, utcnow
from courseware.errors import BusinessRuleViolation, ValidationError, handle_error
from courseware.lifecycle import Status, ValidationResult

from .cascade import CascadeExecutor
from .catalog import parse_status
from .context import OperationContext
from .hierarchy import Level
from .positions import PositionEntry, apply_positions
from .repository import EntityRepository
from .responses import BulkSummary, ensure_uuid, envelope, normalize_ids

LOGGER = logging.getLogger(__name__)


class BulkService:
    """Every batch is locked and checked as a whole before the first write."""

    def __init__(self, session: Session, level: Level) -> None:
        self.session = session
        self.level = level
        self.repo = EntityRepository(session, level)
        self.executor = CascadeExecutor(session)

    @contextlib.contextmanager
    def _operation(self, method: str) -> Iterator[OperationContext]:
        ctx = OperationContext(method=f"{type(self).__name__}.{method}", entity=self.level.name, logger=LOGGER)
        ctx.start()
        try:
            yield ctx
        except Exception as exc:  # noqa: BLE001 - classified and re-raised
            handle_error(ctx, exc)

    def _triage(
        self,
        ids: list[str],
        rows: Mapping[str, Any],
        summary: BulkSummary,
        check,
    ) -> list[Any]:
        """Sort rows into ready, skipped and failed using ``check``."""
        ready = []
        for entity_id in ids:
            entity = rows.get(entity_id)
            if entity is None:
                summary.not_found_ids.append(entity_id)
                continue
            result: ValidationResult = check(entity)
            if result.allowed:
                ready.append(entity)
            elif result.noop:
                summary.skip(entity_id, result.reason)
            else:
                summary.fail(entity_id, result.reason)
        if not ready and summary.failures:
            reasons = "; ".join(f"{item['id']}: {item['reason']}" for item in summary.failures)
            raise BusinessRuleViolation(f"No {self.level.plural} could be processed", detail=reasons)
        return ready

    def change_status_many(self, ids: Iterable[str], status: Status | str) -> dict[str, Any]:
        with self._operation("change_status_many") as ctx:
            target = parse_status(status)
            ids = normalize_ids(ids)
            summary = BulkSummary(requested=len(ids))
            rows = {row.id: row for row in self.repo.find_many(ids, lock=True)}
            ready = self._triage(
                ids, rows, summary, lambda entity: self.executor.check_status_change(self.level, entity, target)
            )

            counts: dict[str, int] = {}
            for entity in ready:
                self.executor.apply_status_change(self.level, entity, target, counts)
                summary.successful += 1

            ctx.success("updated")
            message = f"{summary.successful} of {summary.requested} {self.level.plural} set to {target.label}"
            return envelope(message, summary.as_dict(), {"cascade_updated": counts} if counts else None)

    def apply_positions(self, entries: Iterable[Mapping[str, Any] | PositionEntry]) -> dict[str, Any]:
        with self._operation("apply_positions") as ctx:
            parsed = []
            for entry in entries:
                if isinstance(entry, PositionEntry):
                    parsed.append(PositionEntry(ensure_uuid(entry.id), entry.position))
                else:
                    parsed.append(PositionEntry(ensure_uuid(entry["id"]), int(entry["position"])))
            if len(parsed) > BULK_MAX_ITEMS:
                raise ValidationError(f"Too many entries: {len(parsed)} given, at most {BULK_MAX_ITEMS} allowed")

            rows = apply_positions(self.session, self.level, parsed)
            summary = BulkSummary(requested=len(parsed), successful=len(rows))
            ctx.success("reordered")
            return envelope(f"{len(rows)} {self.level.plural} reordered", summary.as_dict())

    def soft_delete_many(self, ids: Iterable[str], *, cascade: bool | None = None) -> dict[str, Any]:
        with self._operation("soft_delete_many") as ctx:
            ids = normalize_ids(ids)
            summary = BulkSummary(requested=len(ids))
            rows = {row.id: row for row in self.repo.find_many(ids, include_deleted=True, lock=True)}

            def check(entity: Any) -> ValidationResult:
                if entity.is_deleted:
                    return ValidationResult.deny(f"{self.level.name} is already deleted", noop=True)
                return self.executor.check_soft_delete(self.level, entity, cascade)

            ready = self._triage(ids, rows, summary, check)
            counts: dict[str, int] = {}
            if ready:
                # One event: every row shares the timestamp and batch id.
                self.executor.apply_soft_delete(
                    self.level, ready, counts, deleted_at=utcnow(), batch_id=new_id()
                )
                summary.successful = len(ready)

            ctx.success("deleted")
            message = f"{summary.successful} of {summary.requested} {self.level.plural} deleted"
            return envelope(message, summary.as_dict(), {"cascade_deleted": counts} if counts else None)

    def restore_many(self, ids: Iterable[str]) -> dict[str, Any]:
        with self._operation("restore_many") as ctx:
            ids = normalize_ids(ids)
            summary = BulkSummary(requested=len(ids))
            rows = {row.id: row for row in self.repo.find_many(ids, include_deleted=True, lock=True)}
            ready = self._triage(
                ids, rows, summary, lambda entity: self.executor.check_restore(self.level, entity)
            )

            counts: dict[str, int] = {}
            for entity in ready:
                self.executor.apply_restore(self.level, entity, counts)
                summary.successful += 1

            ctx.success("restored")
            message = f"{summary.successful} of {summary.requested} {self.level.plural} restored"
            return envelope(message, summary.as_dict(), {"cascade_restored": counts} if counts else None)


__all__ = ["BulkService"]
