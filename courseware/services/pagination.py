"""Offset pagination over SQLAlchemy select statements."""
from __future__ import annotations

import math
from typing import Any, Callable
from urllib.parse import urlencode

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from courseware.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT


def _link(base_url: str, page: int, limit: int, extra: dict[str, Any]) -> str:
    query = {key: value for key, value in extra.items() if value is not None}
    query.update(page=page, limit=limit)
    return f"{base_url}?{urlencode(query)}"


def paginate(
    session: Session,
    stmt: Select,
    transform: Callable[[Any], Any],
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    base_url: str = "",
    query: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return ``{data, meta, links}`` for one page of ``stmt``."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)
    extra = query or {}

    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = session.scalars(stmt.limit(limit).offset((page - 1) * limit)).all()
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "data": [transform(row) for row in rows],
        "meta": {
            "items_per_page": limit,
            "total_items": total,
            "current_page": page,
            "total_pages": total_pages,
        },
        "links": {
            "first": _link(base_url, 1, limit, extra),
            "last": _link(base_url, max(total_pages, 1), limit, extra),
            "current": _link(base_url, page, limit, extra),
            "next": _link(base_url, page + 1, limit, extra) if page < total_pages else "",
            "previous": _link(base_url, page - 1, limit, extra) if page > 1 else "",
        },
    }


__all__ = ["paginate"]
