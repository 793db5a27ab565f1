"""Columns shared by every entity that takes part in the publication lifecycle."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from courseware.lifecycle.status import Status


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timestamp written as naive UTC and always loaded back as aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


StatusColumn = Enum(
    Status,
    name="lifecycle_status",
    native_enum=False,
    length=16,
    values_callable=lambda members: [member.value for member in members],
    validate_strings=True,
)


class LifecycleMixin:
    """Identity, ordering, status timestamps and soft-delete markers."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, unique=True, index=True)
    status: Mapped[Status] = mapped_column(StatusColumn, nullable=False, default=Status.DRAFT)
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow
    )
    published_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    inactivated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, index=True)
    # Rows soft-deleted by the same cascade share one batch id.
    delete_batch_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_status(self, status: Status, at: datetime | None = None) -> None:
        """Set ``status`` and stamp the first entry into it."""
        moment = at or utcnow()
        self.status = status
        if status is Status.PUBLISHED and self.published_at is None:
            self.published_at = moment
        elif status is Status.INACTIVE and self.inactivated_at is None:
            self.inactivated_at = moment
        elif status is Status.ARCHIVED and self.archived_at is None:
            self.archived_at = moment

    def __repr__(self) -> str:  # pragma: no cover
        return f"{type(self).__name__}(id={self.id!r}, title={self.title!r}, status={self.status!r})"
