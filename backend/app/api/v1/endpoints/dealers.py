from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from backend.app.api.deps import http_error
from backend.app.core.database import get_db
from backend.app.core.exceptions import DealerDeskError
from backend.app.schemas.party import DealerCreate, DealerOut
from backend.app.services.parties import create_dealer, list_dealers

router = APIRouter()


@router.get("", response_model=list[DealerOut])
def get_dealers(db: Session = Depends(get_db)) -> list[DealerOut]:
    return list_dealers(db)


@router.post("", response_model=DealerOut, status_code=status.HTTP_201_CREATED)
def add_dealer(payload: DealerCreate, db: Session = Depends(get_db)) -> DealerOut:
    try:
        return create_dealer(db, payload)
    except DealerDeskError as e:
        raise http_error(e)
