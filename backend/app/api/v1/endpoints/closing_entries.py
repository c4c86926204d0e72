from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from backend.app.api.deps import http_error
from backend.app.core.database import get_db
from backend.app.core.exceptions import DealerDeskError
from backend.app.schemas.closing import ClosingEntryCreate, ClosingEntryOut
from backend.app.services.closing import (
    get_closing_entry,
    list_closing_entries,
    submit_closing_entry,
)

router = APIRouter()


@router.post("", response_model=ClosingEntryOut, status_code=status.HTTP_201_CREATED)
def create_closing_entry(
    payload: ClosingEntryCreate,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return submit_closing_entry(db, payload)
    except DealerDeskError as e:
        raise http_error(e)


@router.get("", response_model=list[ClosingEntryOut])
def get_closing_entries(
    branch_id: UUID | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict]:
    return list_closing_entries(db, branch_id=branch_id, date_from=date_from, date_to=date_to)


@router.get("/{entry_id}", response_model=ClosingEntryOut)
def get_closing_entry_detail(
    entry_id: UUID,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_closing_entry(db, entry_id)
    except DealerDeskError as e:
        raise http_error(e)
