"""Request-level operations for a single hierarchy level."""
from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterator, Mapping

from sqlalchemy.orm import Session

from courseware.config import DEFAULT_PAGE_LIMIT
from courseware.db.models import LessonType
from courseware.errors import BusinessRuleViolation, NotFoundError, ValidationError, handle_error
from courseware.lifecycle import Action, Status, allowed_children_for, validate_action

from . import lesson_types
from .cascade import CascadeExecutor
from .context import OperationContext
from .hierarchy import Level
from .pagination import paginate
from .positions import ensure_position_free, next_position, renumber_scope
from .repository import EntityRepository
from .responses import ensure_uuid, envelope, serialize
from .slugs import unique_slug

LOGGER = logging.getLogger(__name__)

# Columns callers never set directly.
PROTECTED_FIELDS = frozenset(
    {
        "id",
        "slug",
        "status",
        "position",
        "created_at",
        "updated_at",
        "published_at",
        "inactivated_at",
        "archived_at",
        "deleted_at",
        "delete_batch_id",
    }
)


def parse_status(value: Status | str) -> Status:
    try:
        return Status(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown status: {value!r}") from exc


class EntityService:
    """CRUD and lifecycle operations for one :class:`Level`.

    Every public method returns a JSON-ready envelope and re-raises failures
    through :func:`courseware.errors.handle_error`.
    """

    def __init__(self, session: Session, level: Level) -> None:
        self.session = session
        self.level = level
        self.repo = EntityRepository(session, level)
        self.executor = CascadeExecutor(session)

    @contextlib.contextmanager
    def _operation(self, method: str, entity_id: str | None = None) -> Iterator[OperationContext]:
        ctx = OperationContext(
            method=f"{type(self).__name__}.{method}",
            entity=self.level.name,
            id=entity_id,
            logger=LOGGER,
        )
        ctx.start()
        try:
            yield ctx
        except Exception as exc:  # noqa: BLE001 - classified and re-raised
            handle_error(ctx, exc)

    def _assign(self, entity: Any, fields: Mapping[str, Any]) -> None:
        columns = set(self.level.model.__table__.columns.keys()) - PROTECTED_FIELDS
        for key, value in fields.items():
            if key in columns:
                setattr(entity, key, value)

    def _load_parent(self, parent_id: Any) -> Any:
        parent_level = self.level.parent
        parent_id = ensure_uuid(parent_id, f"{parent_level.name.lower()} id")
        parent = EntityRepository(self.session, parent_level).find_by_id(parent_id, lock=True)
        if parent is None:
            raise NotFoundError(f"{parent_level.name} with ID {parent_id} not found")
        return parent

    def _check_create(self, parent: Any) -> None:
        result = validate_action(
            parent.status,
            None,
            Action.CREATE,
            entity_name=self.level.name,
            parent_name=self.level.parent.name,
        )
        if not result.allowed:
            raise BusinessRuleViolation(result.reason)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entity_id: str) -> dict[str, Any]:
        with self._operation("get", entity_id) as ctx:
            entity_id = ensure_uuid(entity_id)
            entity = self.repo.find_by_id(entity_id)
            if entity is None:
                raise NotFoundError(f"{self.level.name} with ID {entity_id} not found")
            return envelope(ctx.success("fetched"), serialize(self.level, entity))

    def list(
        self,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_LIMIT,
        parent_id: str | None = None,
        status: Status | str | None = None,
        base_url: str = "",
    ) -> dict[str, Any]:
        with self._operation("list") as ctx:
            scope_id = ensure_uuid(parent_id, "parent id") if parent_id else None
            stmt = self.repo.select_rows(scope_id=scope_id)
            if status is not None:
                stmt = stmt.where(self.level.model.status == parse_status(status))
            result = paginate(
                self.session,
                stmt,
                lambda row: serialize(self.level, row),
                page=page,
                limit=limit,
                base_url=base_url,
                query={"parent_id": scope_id, "status": status.value if isinstance(status, Status) else status},
            )
            ctx.success("fetched")
            return result

    def list_deleted(self, *, page: int = 1, limit: int = DEFAULT_PAGE_LIMIT, base_url: str = "") -> dict[str, Any]:
        with self._operation("list_deleted") as ctx:
            stmt = self.repo.select_rows(only_deleted=True)
            result = paginate(
                self.session,
                stmt,
                lambda row: serialize(self.level, row),
                page=page,
                limit=limit,
                base_url=base_url,
            )
            ctx.success("fetched")
            return result

    def list_by_parent(self, parent_id: str) -> dict[str, Any]:
        with self._operation("list_by_parent", parent_id):
            if self.level.is_root:
                raise ValidationError(f"{self.level.plural.capitalize()} have no parent")
            parent = self._load_parent(parent_id)
            rows = self.repo.find_many(scope_id=parent.id)
            message = f"Fetched {len(rows)} {self.level.plural} for {self.level.parent.name.lower()} {parent.id}"
            return envelope(message, [serialize(self.level, row) for row in rows], {"count": len(rows)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        with self._operation("create") as ctx:
            fields = dict(data)
            fields.pop("status", None)
            title = fields.pop("title", None)
            if not title or not str(title).strip():
                raise ValidationError(f"{self.level.name} title is required")

            scope_id = None
            if not self.level.is_root:
                parent = self._load_parent(fields.get(self.level.scope_attr))
                self._check_create(parent)
                scope_id = parent.id
                fields[self.level.scope_attr] = parent.id

            position = fields.pop("position", None)
            if position is None:
                position = next_position(self.repo, scope_id)
            else:
                ensure_position_free(self.repo, scope_id, position)

            payload = fields.pop("content", None) if self.level.has_payload else None
            strategy = None
            if self.level.has_payload:
                strategy = lesson_types.strategy_for(fields.get("lesson_type") or LessonType.CONTENT)
                fields["lesson_type"] = strategy.lesson_type
                if payload is not None:
                    strategy.validate(payload)

            entity = self.level.model(
                title=str(title).strip(),
                slug=unique_slug(self.repo, str(title)),
                status=Status.DRAFT,
                position=position,
            )
            self._assign(entity, fields)
            self.repo.save(entity)
            if strategy is not None and payload is not None:
                strategy.prepare(self.session, entity, payload)

            ctx.id = entity.id
            return envelope(ctx.success("created"), serialize(self.level, entity))

    def _move(self, entity: Any, new_parent_id: Any) -> None:
        new_parent = self._load_parent(new_parent_id)
        if new_parent.id == self.level.scope_of(entity):
            return
        self._check_create(new_parent)
        if entity.status not in allowed_children_for(new_parent.status):
            raise BusinessRuleViolation(
                f"Cannot move {entity.status.label} {self.level.name.lower()} into "
                f"{new_parent.status.label} {self.level.parent.name.lower()}"
            )
        old_scope = self.level.scope_of(entity)
        entity.position = next_position(self.repo, new_parent.id)
        setattr(entity, self.level.scope_attr, new_parent.id)
        self.session.flush()
        renumber_scope(self.session, self.level, old_scope)

    def _check_reorder(self, entity: Any, position: int) -> None:
        scope_id = self.level.scope_of(entity)
        owner = self.executor.parent_of(self.level, entity)
        if owner is not None:
            check = validate_action(
                owner.status,
                None,
                Action.REORDER,
                entity_name=self.level.plural,
                parent_name=self.level.parent.name,
            )
            if not check.allowed:
                raise BusinessRuleViolation(check.reason)
        sibling_count = self.repo.count_by_scope(scope_id, include_deleted=True)
        if not 1 <= position <= sibling_count:
            raise ValidationError(f"Position {position} is out of range. Valid range is 1 to {sibling_count}.")

    def update(self, entity_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
        with self._operation("update", entity_id) as ctx:
            entity_id = ensure_uuid(entity_id)
            fields = dict(data)
            if not fields:
                raise ValidationError("At least one field must be provided for update")

            entity = self.executor.load(self.level, entity_id)
            parent = self.executor.parent_of(self.level, entity)
            # Status-only requests are governed by the transition rules alone.
            if parent is not None and set(fields) - {"status"}:
                result = validate_action(
                    parent.status,
                    entity.status,
                    Action.UPDATE,
                    entity_name=self.level.name,
                    parent_name=self.level.parent.name,
                )
                if not result.allowed:
                    raise BusinessRuleViolation(result.reason)

            target = fields.pop("status", None)
            position = fields.pop("position", None)
            new_parent_id = fields.pop(self.level.scope_attr, None) if self.level.scope_attr else None
            payload = fields.pop("content", None) if self.level.has_payload else None
            lesson_type = fields.pop("lesson_type", None) if self.level.has_payload else None

            if self.level.has_payload:
                strategy = lesson_types.strategy_for(lesson_type or entity.lesson_type)
                type_changed = strategy.lesson_type is not entity.lesson_type
                existing = lesson_types.active_payload(self.session, entity.id)
                if payload is not None or (type_changed and existing is not None):
                    entity.lesson_type = strategy.lesson_type
                    strategy.update(self.session, entity, payload or {}, replace=type_changed)
                elif type_changed:
                    entity.lesson_type = strategy.lesson_type

            if new_parent_id is not None:
                self._move(entity, new_parent_id)
            if position is not None and position != entity.position:
                self._check_reorder(entity, position)
                ensure_position_free(self.repo, self.level.scope_of(entity), position, exclude_id=entity.id)
                entity.position = position

            title = fields.get("title")
            if title is not None:
                fields["title"] = title = str(title).strip()
                if title != entity.title:
                    entity.slug = unique_slug(self.repo, title, exclude_id=entity.id)
            self._assign(entity, fields)
            self.session.flush()

            meta = None
            if target is not None and parse_status(target) is not entity.status:
                report = self.executor.change_status(self.level, entity.id, parse_status(target))
                meta = report.as_meta()

            return envelope(ctx.success("updated"), serialize(self.level, entity), meta)

    def change_status(self, entity_id: str, status: Status | str) -> dict[str, Any]:
        with self._operation("change_status", entity_id) as ctx:
            report = self.executor.change_status(self.level, ensure_uuid(entity_id), parse_status(status))
            return envelope(ctx.success("updated"), serialize(self.level, report.entity), report.as_meta())

    def soft_delete(self, entity_id: str, *, cascade: bool | None = None) -> dict[str, Any]:
        with self._operation("soft_delete", entity_id) as ctx:
            report = self.executor.soft_delete(self.level, ensure_uuid(entity_id), cascade)
            return envelope(ctx.success("deleted"), serialize(self.level, report.entity), report.as_meta())

    def restore(self, entity_id: str) -> dict[str, Any]:
        with self._operation("restore", entity_id) as ctx:
            report = self.executor.restore(self.level, ensure_uuid(entity_id))
            return envelope(ctx.success("restored"), serialize(self.level, report.entity), report.as_meta())

    def hard_delete(self, entity_id: str) -> dict[str, Any]:
        with self._operation("hard_delete", entity_id) as ctx:
            entity_id = ensure_uuid(entity_id)
            report = self.executor.hard_delete(self.level, entity_id)
            return envelope(ctx.success("deleted"), {"id": entity_id}, report.as_meta())


__all__ = ["EntityService", "parse_status"]
