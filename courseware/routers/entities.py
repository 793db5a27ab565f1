"""Lifecycle endpoints generated once per hierarchy level."""
# No postponed annotations here: request models are picked per level at runtime.
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from ..config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..dependencies import get_db
from ..lifecycle import Status
from ..schemas import SCHEMAS, BulkPositions, BulkStatusChange, IdsPayload, StatusChange
from ..services import BulkService, EntityService, Level


def build_router(level: Level) -> APIRouter:
    schemas = SCHEMAS[level.key]
    create_schema = schemas.create
    update_schema = schemas.update

    router = APIRouter(prefix=f"/{level.path}", tags=[level.path])

    @router.get("")
    def list_entities(
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
        parent_id: Optional[str] = None,
        status_filter: Optional[Status] = Query(None, alias="status"),
        db: Session = Depends(get_db),
    ) -> Dict[str, Any]:
        return EntityService(db, level).list(
            page=page,
            limit=limit,
            parent_id=parent_id,
            status=status_filter,
            base_url=request.url.path,
        )

    @router.get("/deleted")
    def list_deleted_entities(
        request: Request,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
        db: Session = Depends(get_db),
    ) -> Dict[str, Any]:
        return EntityService(db, level).list_deleted(page=page, limit=limit, base_url=request.url.path)

    if not level.is_root:

        @router.get("/by-parent/{parent_id}")
        def list_by_parent(parent_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
            return EntityService(db, level).list_by_parent(parent_id)

    @router.patch("/bulk/status")
    def bulk_change_status(payload: BulkStatusChange, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return BulkService(db, level).change_status_many(payload.ids, payload.status)

    @router.patch("/bulk/positions")
    def bulk_apply_positions(payload: BulkPositions, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return BulkService(db, level).apply_positions(entry.model_dump() for entry in payload.entries)

    @router.post("/bulk/delete")
    def bulk_soft_delete(payload: IdsPayload, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return BulkService(db, level).soft_delete_many(payload.ids, cascade=payload.cascade)

    @router.post("/bulk/restore")
    def bulk_restore(payload: IdsPayload, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return BulkService(db, level).restore_many(payload.ids)

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_entity(payload: create_schema, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).create(payload.model_dump(exclude_unset=True))

    @router.get("/{entity_id}")
    def get_entity(entity_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).get(entity_id)

    @router.patch("/{entity_id}")
    def update_entity(entity_id: str, payload: update_schema, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).update(entity_id, payload.model_dump(exclude_unset=True))

    @router.patch("/{entity_id}/status")
    def change_entity_status(entity_id: str, payload: StatusChange, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).change_status(entity_id, payload.status)

    @router.delete("/{entity_id}")
    def soft_delete_entity(
        entity_id: str,
        cascade: Optional[bool] = None,
        db: Session = Depends(get_db),
    ) -> Dict[str, Any]:
        return EntityService(db, level).soft_delete(entity_id, cascade=cascade)

    @router.delete("/{entity_id}/permanent")
    def hard_delete_entity(entity_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).hard_delete(entity_id)

    @router.post("/{entity_id}/restore")
    def restore_entity(entity_id: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
        return EntityService(db, level).restore(entity_id)

    return router


__all__ = ["build_router"]
