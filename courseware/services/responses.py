"""Response envelopes and id helpers shared by the service layer."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable

from courseware.config import BULK_MAX_ITEMS
from courseware.errors import ValidationError
from courseware.schemas import SCHEMAS

from .hierarchy import Level


def envelope(message: str, data: Any = None, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message}
    if data is not None:
        body["data"] = data
    if meta:
        body["meta"] = meta
    return body


def serialize(level: Level, entity: Any) -> dict[str, Any]:
    return SCHEMAS[level.key].read.model_validate(entity).model_dump(mode="json")


def ensure_uuid(value: str, label: str = "id") -> str:
    try:
        parsed = uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {label}: {value!r} is not a valid UUID") from exc
    if parsed.version != 4:
        raise ValidationError(f"Invalid {label}: {value!r} is not a UUID v4")
    return str(parsed)


def normalize_ids(ids: Iterable[str], *, limit: int = BULK_MAX_ITEMS) -> list[str]:
    """Validate and de-duplicate ids while keeping their request order."""
    unique: list[str] = []
    seen: set[str] = set()
    for value in ids:
        entity_id = ensure_uuid(value)
        if entity_id not in seen:
            seen.add(entity_id)
            unique.append(entity_id)
    if not unique:
        raise ValidationError("At least one id is required")
    if len(unique) > limit:
        raise ValidationError(f"Too many ids: {len(unique)} given, at most {limit} allowed")
    return unique


@dataclass(slots=True)
class BulkSummary:
    requested: int
    successful: int = 0
    not_found_ids: list[str] = field(default_factory=list)
    skipped_items: list[dict[str, str]] = field(default_factory=list)
    failures: list[dict[str, str]] = field(default_factory=list)

    def skip(self, entity_id: str, reason: str) -> None:
        self.skipped_items.append({"id": entity_id, "reason": reason})

    def fail(self, entity_id: str, reason: str) -> None:
        self.failures.append({"id": entity_id, "reason": reason})

    def as_dict(self) -> dict[str, Any]:
        return {
            "requested": self.requested,
            "successful": self.successful,
            "skipped": len(self.skipped_items),
            "failed": len(self.failures),
            "not_found": len(self.not_found_ids),
            "not_found_ids": list(self.not_found_ids),
            "skipped_items": list(self.skipped_items),
            "failures": list(self.failures),
        }


__all__ = ["BulkSummary", "ensure_uuid", "envelope", "normalize_ids", "serialize"]
