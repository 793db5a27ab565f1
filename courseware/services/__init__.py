"""Convenient re-exports for the courseware service layer."""
from __future__ import annotations

from .bulk import BulkService
from .cascade import CascadeExecutor, CascadeReport
from .catalog import EntityService
from .context import OperationContext, generate_message
from .hierarchy import LEVELS, DeletePolicy, Level, get_level
from .positions import PositionEntry, apply_positions, renumber_scope
from .repository import EntityRepository
from .slugs import slugify, unique_slug

__all__ = [
    "BulkService",
    "CascadeExecutor",
    "CascadeReport",
    "DeletePolicy",
    "EntityRepository",
    "EntityService",
    "LEVELS",
    "Level",
    "OperationContext",
    "PositionEntry",
    "apply_positions",
    "generate_message",
    "get_level",
    "renumber_scope",
    "slugify",
    "unique_slug",
]
