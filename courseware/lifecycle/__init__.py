"""Publication lifecycle rules shared by every level of the course hierarchy."""
from __future__ import annotations

from .impact import ImpactResult, analyze_parent_change
from .status import (
    ACTION_PERMISSIONS,
    ALLOWED_CHILDREN,
    DELETE_RULES,
    RESTORE_RULES,
    STATUS_TRANSITIONS,
    UPDATE_RULES,
    Action,
    Status,
    allowed_actions,
    allowed_children_for,
    allowed_transitions,
    requires_content_validation,
)
from .validator import (
    ValidationResult,
    validate_action,
    validate_parent_change_with_children,
    validate_status_transition,
)

__all__ = [
    "ACTION_PERMISSIONS",
    "ALLOWED_CHILDREN",
    "Action",
    "DELETE_RULES",
    "ImpactResult",
    "RESTORE_RULES",
    "STATUS_TRANSITIONS",
    "Status",
    "UPDATE_RULES",
    "ValidationResult",
    "allowed_actions",
    "allowed_children_for",
    "allowed_transitions",
    "analyze_parent_change",
    "requires_content_validation",
    "validate_action",
    "validate_parent_change_with_children",
    "validate_status_transition",
]
