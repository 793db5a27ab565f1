"""Exception taxonomy and storage error classification."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NoReturn

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

if TYPE_CHECKING:  # pragma: no cover
    from courseware.services.context import OperationContext

LOGGER = logging.getLogger(__name__)


class CoursewareError(Exception):
    """Base class for every error the service layer raises on purpose."""

    status_code = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail if detail is not None else message


class ValidationError(CoursewareError):
    status_code = 400


class NotFoundError(CoursewareError):
    status_code = 404


class ConflictError(CoursewareError):
    status_code = 409


class BusinessRuleViolation(CoursewareError):
    """A lifecycle rule denied the request."""

    status_code = 400


class StorageError(CoursewareError):
    status_code = 500


class StorageUnavailableError(StorageError):
    status_code = 503


class StorageTimeoutError(StorageError):
    status_code = 504


def _driver_message(exc: SQLAlchemyError) -> str:
    return str(getattr(exc, "orig", None) or exc).lower()


def classify_error(exc: BaseException) -> CoursewareError:
    """Translate ``exc`` into the taxonomy without raising."""
    if isinstance(exc, CoursewareError):
        return exc
    if isinstance(exc, IntegrityError):
        text = _driver_message(exc)
        if "unique" in text or "duplicate" in text:
            return ConflictError("Duplicate entry", detail=text)
        if "foreign key" in text:
            return ValidationError("Referenced record does not exist", detail=text)
        if "not null" in text:
            return ValidationError("Required field is missing", detail=text)
        return ValidationError("Data integrity violation", detail=text)
    if isinstance(exc, OperationalError):
        text = _driver_message(exc)
        if "timeout" in text or "timed out" in text or "locked" in text:
            return StorageTimeoutError("Database operation timed out", detail=text)
        return StorageUnavailableError("Database unavailable", detail=text)
    if isinstance(exc, SQLAlchemyError):
        return StorageError("Database error", detail=str(exc))
    return CoursewareError("Internal error", detail=str(exc))


def handle_error(ctx: "OperationContext", exc: BaseException) -> NoReturn:
    """Log ``exc`` against ``ctx`` and re-raise it as a taxonomy error."""
    error = classify_error(exc)
    if error.status_code >= 500:
        LOGGER.error("%s", ctx.fail(error.detail), exc_info=exc)
    else:
        LOGGER.warning("%s", ctx.fail(error.detail))
    if error is exc:
        raise error
    raise error from exc


__all__ = [
    "BusinessRuleViolation",
    "ConflictError",
    "CoursewareError",
    "NotFoundError",
    "StorageError",
    "StorageTimeoutError",
    "StorageUnavailableError",
    "ValidationError",
    "classify_error",
    "handle_error",
]
