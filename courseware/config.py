"""Application configuration settings."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Final

BASE_DIR: Final[Path] = Path(__file__).resolve().parent.parent
DATA_DIR: Final[Path] = Path(os.getenv("COURSEWARE_DATA_DIR", str(BASE_DIR / "data")))

DATABASE_URL: Final[str] = os.getenv(
    "DATABASE_URL", f"sqlite:///{(DATA_DIR / 'courseware.db').as_posix()}"
)
SQLALCHEMY_ECHO: Final[bool] = os.getenv("SQLALCHEMY_ECHO") == "1"

LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")

# Upper bound for ids/entries accepted by a single bulk request.
BULK_MAX_ITEMS: Final[int] = int(os.getenv("BULK_MAX_ITEMS", 100))

SLUG_SUFFIX_LENGTH: Final[int] = int(os.getenv("SLUG_SUFFIX_LENGTH", 5))

DEFAULT_PAGE_LIMIT: Final[int] = int(os.getenv("DEFAULT_PAGE_LIMIT", 10))
MAX_PAGE_LIMIT: Final[int] = int(os.getenv("MAX_PAGE_LIMIT", 100))

SEED_DEV_DATA: Final[bool] = os.getenv("SEED_DEV_DATA") == "1"

# Ensure the SQLite data directory exists at import time.
DATA_DIR.mkdir(parents=True, exist_ok=True)
