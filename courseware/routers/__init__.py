"""HTTP routers for the courseware API."""
from __future__ import annotations

from .entities import build_router

__all__ = ["build_router"]
