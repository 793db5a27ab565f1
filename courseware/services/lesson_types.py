"""Per-lesson-type payload handling.

Each :class:`LessonType` maps to a :class:`PayloadStrategy` that knows which
field the payload must carry and how it is stored on ``LessonContent``. All
payloads live in one table, so the per-type soft-delete, restore and purge
methods delegate to the module-level helpers, which also serve whole subtrees.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from courseware.db.models import Lesson, LessonContent, LessonType
from courseware.errors import ValidationError


def _non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


@dataclass(frozen=True, slots=True)
class PayloadStrategy:
    lesson_type: LessonType
    required: str
    check: Callable[[Any], bool]
    message: str

    def validate(self, payload: Mapping[str, Any] | None) -> dict[str, Any]:
        if not payload or not self.check(payload.get(self.required)):
            raise ValidationError(self.message)
        return dict(payload)

    def prepare(self, session: Session, lesson: Lesson, payload: Mapping[str, Any]) -> LessonContent:
        data = self.validate(payload)
        content = LessonContent()
        _store(content, data)
        lesson.content = content
        session.flush()
        return content

    def update(
        self, session: Session, lesson: Lesson, payload: Mapping[str, Any], *, replace: bool = False
    ) -> LessonContent:
        """Merge ``payload`` into the active payload, or swap it out when ``replace`` is set."""
        content = active_payload(session, lesson.id)
        if content is None:
            return self.prepare(session, lesson, payload)
        data = dict(payload) if replace else {**_load(content), **dict(payload)}
        _store(content, self.validate(data))
        session.flush()
        return content

    def has_content(self, session: Session, lesson: Lesson) -> bool:
        content = active_payload(session, lesson.id)
        return content is not None and self.check(_load(content).get(self.required))

    def cleanup_on_delete(self, session: Session, lesson: Lesson, deleted_at: datetime, batch_id: str) -> int:
        return cleanup_on_delete(session, [lesson.id], deleted_at, batch_id)

    def restore(self, session: Session, lesson: Lesson, batch_id: str) -> int:
        return restore_payloads(session, [lesson.id], batch_id)

    def cleanup_on_hard_delete(self, session: Session, lesson: Lesson) -> int:
        return cleanup_on_hard_delete(session, [lesson.id])


def _store(content: LessonContent, data: dict[str, Any]) -> None:
    content.body = data.pop("content", None)
    content.url = data.pop("url", None)
    content.data = data or None


def _load(content: LessonContent) -> dict[str, Any]:
    data = dict(content.data or {})
    if content.body is not None:
        data["content"] = content.body
    if content.url is not None:
        data["url"] = content.url
    return data


STRATEGIES: dict[LessonType, PayloadStrategy] = {
    LessonType.CONTENT: PayloadStrategy(
        LessonType.CONTENT, "content", _non_empty_text, "Content lessons require a non-empty 'content' field"
    ),
    LessonType.ASSIGNMENT: PayloadStrategy(
        LessonType.ASSIGNMENT,
        "content",
        _non_empty_text,
        "Assignment lessons require instructions in the 'content' field",
    ),
    LessonType.QUIZ: PayloadStrategy(
        LessonType.QUIZ, "questions", _non_empty_list, "Quiz lessons require a non-empty 'questions' list"
    ),
    LessonType.PDF: PayloadStrategy(LessonType.PDF, "url", _non_empty_text, "PDF lessons require a 'url'"),
}


def strategy_for(lesson_type: LessonType | str) -> PayloadStrategy:
    try:
        return STRATEGIES[LessonType(lesson_type)]
    except ValueError as exc:
        raise ValidationError(f"Unsupported lesson type: {lesson_type}") from exc


def payload_view(content: LessonContent | None) -> dict[str, Any] | None:
    if content is None or content.deleted_at is not None:
        return None
    return _load(content)


def active_payload(session: Session, lesson_id: str) -> LessonContent | None:
    return session.scalar(
        select(LessonContent).where(LessonContent.lesson_id == lesson_id, LessonContent.deleted_at.is_(None))
    )


def cleanup_on_delete(session: Session, lesson_ids: Sequence[str], deleted_at: datetime, batch_id: str) -> int:
    if not lesson_ids:
        return 0
    result = session.execute(
        update(LessonContent)
        .where(LessonContent.lesson_id.in_(lesson_ids), LessonContent.deleted_at.is_(None))
        .values(deleted_at=deleted_at, delete_batch_id=batch_id)
    )
    return result.rowcount


def restore_payloads(session: Session, lesson_ids: Sequence[str], batch_id: str) -> int:
    if not lesson_ids:
        return 0
    result = session.execute(
        update(LessonContent)
        .where(LessonContent.lesson_id.in_(lesson_ids), LessonContent.delete_batch_id == batch_id)
        .values(deleted_at=None, delete_batch_id=None)
    )
    return result.rowcount


def cleanup_on_hard_delete(session: Session, lesson_ids: Sequence[str]) -> int:
    if not lesson_ids:
        return 0
    result = session.execute(delete(LessonContent).where(LessonContent.lesson_id.in_(lesson_ids)))
    return result.rowcount


__all__ = [
    "PayloadStrategy",
    "STRATEGIES",
    "active_payload",
    "cleanup_on_delete",
    "cleanup_on_hard_delete",
    "payload_view",
    "restore_payloads",
    "strategy_for",
]
