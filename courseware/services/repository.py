"""Generic SQLAlchemy repository shared by every hierarchy level."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Sequence

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.orm import Session

from .hierarchy import Level


class EntityRepository:
    """Queries and batch writes for the rows of one :class:`Level`."""

    def __init__(self, session: Session, level: Level) -> None:
        self.session = session
        self.level = level
        self.model = level.model

    def _scoped(self, stmt: Select, scope_id: str | None) -> Select:
        if self.level.scope_attr is not None and scope_id is not None:
            stmt = stmt.where(getattr(self.model, self.level.scope_attr) == scope_id)
        return stmt

    def select_rows(
        self,
        *,
        scope_id: str | None = None,
        include_deleted: bool = False,
        only_deleted: bool = False,
    ) -> Select:
        stmt = self._scoped(select(self.model), scope_id)
        if only_deleted:
            stmt = stmt.where(self.model.deleted_at.is_not(None))
        elif not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt.order_by(self.model.position)

    def find_by_id(self, entity_id: str, *, include_deleted: bool = False, lock: bool = False) -> Any | None:
        stmt = select(self.model).where(self.model.id == entity_id)
        if not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        if lock:
            stmt = stmt.with_for_update()
        return self.session.scalar(stmt)

    def find_many(
        self,
        ids: Iterable[str] | None = None,
        *,
        scope_id: str | None = None,
        scope_ids: Iterable[str] | None = None,
        include_deleted: bool = False,
        only_deleted: bool = False,
        batch_id: str | None = None,
        lock: bool = False,
    ) -> Sequence[Any]:
        stmt = self.select_rows(scope_id=scope_id, include_deleted=include_deleted, only_deleted=only_deleted)
        if ids is not None:
            stmt = stmt.where(self.model.id.in_(list(ids)))
        if scope_ids is not None and self.level.scope_attr is not None:
            stmt = stmt.where(getattr(self.model, self.level.scope_attr).in_(list(scope_ids)))
        if batch_id is not None:
            stmt = stmt.where(self.model.delete_batch_id == batch_id)
        if lock:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).all()

    def save(self, entity: Any) -> Any:
        self.session.add(entity)
        self.session.flush()
        return entity

    def soft_delete(self, ids: Sequence[str], deleted_at: datetime, batch_id: str) -> int:
        if not ids:
            return 0
        result = self.session.execute(
            update(self.model)
            .where(self.model.id.in_(ids))
            .values(deleted_at=deleted_at, delete_batch_id=batch_id)
        )
        return result.rowcount

    def restore(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        result = self.session.execute(
            update(self.model)
            .where(self.model.id.in_(ids))
            .values(deleted_at=None, delete_batch_id=None)
        )
        return result.rowcount

    def hard_delete(self, ids: Sequence[str]) -> int:
        if not ids:
            return 0
        result = self.session.execute(delete(self.model).where(self.model.id.in_(ids)))
        return result.rowcount

    def count_by_scope(self, scope_id: str | None, *, include_deleted: bool = False) -> int:
        stmt = self._scoped(select(func.count()).select_from(self.model), scope_id)
        if not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return self.session.scalar(stmt) or 0

    def max_position(self, scope_id: str | None) -> int:
        """Highest position in the scope, soft-deleted rows included."""
        stmt = self._scoped(select(func.max(self.model.position)), scope_id)
        return self.session.scalar(stmt) or 0

    def position_holder(self, scope_id: str | None, position: int) -> Any | None:
        stmt = self._scoped(select(self.model).where(self.model.position == position), scope_id)
        return self.session.scalar(stmt)

    def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        stmt = select(self.model.id).where(self.model.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return self.session.scalar(stmt.limit(1)) is not None


__all__ = ["EntityRepository"]
