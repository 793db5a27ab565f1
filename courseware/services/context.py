"""Operation context and log message formatting."""
from __future__ import annotations

import logging
from dataclasses import dataclass

SUCCESS_ACTIONS = frozenset({"created", "updated", "deleted", "restored", "fetched", "reordered"})


def generate_message(
    action: str,
    entity: str,
    entity_id: str | None = None,
    reason: str | None = None,
) -> str:
    """Build the human-readable sentence used in responses and log lines."""
    subject = f"{entity} with ID {entity_id}" if entity_id else entity
    if action == "start":
        return f"Start {subject}"
    if action == "failed":
        return f"{subject} failed: {reason or 'unknown error'}"
    if action in SUCCESS_ACTIONS:
        return f"{subject} {action} successfully"
    message = f"{subject} {action}"
    return f"{message}: {reason}" if reason else message


@dataclass(slots=True)
class OperationContext:
    """Who is doing what to which record, carried through one service call."""

    method: str
    entity: str
    id: str | None = None
    logger: logging.Logger | None = None

    def _emit(self, level: int, message: str) -> str:
        line = f"[{self.method}] {message}"
        (self.logger or logging.getLogger("courseware")).log(level, "%s", line)
        return message

    def start(self) -> str:
        return self._emit(logging.INFO, generate_message("start", self.entity, self.id))

    def success(self, action: str) -> str:
        return self._emit(logging.INFO, generate_message(action, self.entity, self.id))

    def warn(self, action: str, reason: str) -> str:
        return self._emit(logging.WARNING, generate_message(action, self.entity, self.id, reason))

    def fail(self, reason: str | None) -> str:
        """Format a failure line; :func:`courseware.errors.handle_error` does the logging."""
        return f"[{self.method}] {generate_message('failed', self.entity, self.id, reason)}"


__all__ = ["OperationContext", "generate_message"]
