"""Slug generation helpers."""
from __future__ import annotations

import re
import secrets
import string

from courseware.config import SLUG_SUFFIX_LENGTH

from .repository import EntityRepository

_ALPHABET = string.ascii_lowercase + string.digits


def slugify(text: str) -> str:
    """Create a URL-friendly slug from ``text``."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def random_suffix(length: int = SLUG_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def unique_slug(repo: EntityRepository, title: str, exclude_id: str | None = None) -> str:
    """Return a slug for ``title`` that no other row of ``repo`` uses."""
    base = slugify(title) or repo.level.key.replace("_", "-")
    slug = base
    while repo.slug_exists(slug, exclude_id):
        slug = f"{base}-{random_suffix()}"
    return slug


__all__ = ["random_suffix", "slugify", "unique_slug"]
