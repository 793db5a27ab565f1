"""FastAPI application exposing the courseware lifecycle API."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL, SEED_DEV_DATA
from .db import get_session, init_db
from .errors import CoursewareError
from .routers import build_router
from .services import LEVELS

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))

app = FastAPI(title="Courseware Lifecycle Service", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for level in LEVELS.values():
    app.include_router(build_router(level))


@app.exception_handler(CoursewareError)
async def courseware_error_handler(request: Request, exc: CoursewareError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, "detail": exc.detail})


@app.on_event("startup")
def startup_event() -> None:  # pragma: no cover - exercised indirectly
    init_db()
    if SEED_DEV_DATA:
        from .db.fixtures import seed_dev_data

        with get_session() as session:
            seed_dev_data(session)
        LOGGER.info("Seeded development data")


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
