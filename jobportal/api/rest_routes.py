# jobportal/api/rest_routes.py
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_identity
from jobportal.backend.service import TableService
from jobportal.db.session import get_db
from jobportal.schemas.records import Identity

router = APIRouter(prefix="/rest/v1", tags=["tables"])

# query parameters that are not column filters
_RESERVED = {"order", "limit"}


def _filters(request: Request) -> dict[str, Any]:
    return {
        k: (None if v == "null" else v)
        for k, v in request.query_params.items()
        if k not in _RESERVED
    }


@router.get("/{table}", summary="Select rows matching equality filters")
def select_rows(
    table: str,
    request: Request,
    order: str | None = Query(None, description="column, '-' prefix for descending"),
    limit: int | None = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    return TableService(db, table).select(_filters(request), order=order, limit=limit)


@router.get("/{table}/count")
def count_rows(table: str, request: Request, db: Session = Depends(get_db)):
    return {"count": TableService(db, table).count(_filters(request))}


@router.post("/{table}", status_code=201)
def insert_row(
    table: str,
    values: dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return TableService(db, table, identity.id).insert(values)


@router.patch("/{table}")
def update_rows(
    table: str,
    request: Request,
    values: dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return TableService(db, table, identity.id).update(values, _filters(request))


@router.delete("/{table}")
def delete_rows(
    table: str,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return {"deleted": TableService(db, table, identity.id).delete(_filters(request))}
