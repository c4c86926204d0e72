from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.api.deps import http_error
from backend.app.core.database import get_db
from backend.app.core.exceptions import DealerDeskError
from backend.app.schemas.party import BranchCreate, BranchOut
from backend.app.services.parties import create_branch, list_branches

router = APIRouter()


@router.get("", response_model=list[BranchOut])
def get_branches(db: Session = Depends(get_db)) -> list[BranchOut]:
    return list_branches(db)


@router.post("", response_model=BranchOut, status_code=status.HTTP_201_CREATED)
def add_branch(payload: BranchCreate, db: Session = Depends(get_db)) -> BranchOut:
    try:
        return create_branch(db, payload)
    except DealerDeskError as e:
        raise http_error(e)
