from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from backend.app.api.deps import form_value, http_error, read_upload
from backend.app.core.database import get_db
from backend.app.core.exceptions import DealerDeskError
from backend.app.models.bill import BillStatus
from backend.app.schemas.bill import BillCreate, BillOut, BillUpdate
from backend.app.services.bills import (
    create_bill,
    get_bill,
    get_bill_document,
    list_bills,
    update_bill,
)
from backend.app.services.cash import to_decimal
from backend.app.services.file_service import DocumentStore, get_document_store

router = APIRouter()


@router.post("", response_model=BillOut, status_code=status.HTTP_201_CREATED)
def create_bill_entry(
    dealer_id: UUID | None = Form(None),
    branch_id: UUID | None = Form(None),
    bill_number: str | None = Form(None),
    amount: str | None = Form(None),
    document: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> dict:
    try:
        raw_amount = form_value(amount)
        data = BillCreate(
            dealer_id=dealer_id,
            branch_id=branch_id,
            bill_number=bill_number,
            amount=to_decimal(raw_amount) if raw_amount is not None else None,
        )
        return create_bill(db, data, document=read_upload(document, store.max_bytes), store=store)
    except DealerDeskError as e:
        raise http_error(e)


@router.get("", response_model=list[BillOut])
def get_bills(
    search: str | None = Query(None),
    branch_id: UUID | None = Query(None),
    dealer_id: UUID | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    db: Session = Depends(get_db),
) -> list[dict]:
    bill_status: BillStatus | None = None
    if status_filter:
        try:
            bill_status = BillStatus(status_filter)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status: {status_filter}",
            )
    return list_bills(
        db,
        search=search,
        branch_id=branch_id,
        dealer_id=dealer_id,
        status=bill_status,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/{bill_id}", response_model=BillOut)
def get_bill_entry(
    bill_id: UUID,
    db: Session = Depends(get_db),
) -> dict:
    try:
        return get_bill(db, bill_id)
    except DealerDeskError as e:
        raise http_error(e)


@router.get("/{bill_id}/document")
def download_bill_document(
    bill_id: UUID,
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> FileResponse:
    try:
        path = get_bill_document(db, bill_id, store=store)
    except DealerDeskError as e:
        raise http_error(e)
    return FileResponse(path, filename=path.name)


@router.put("/{bill_id}", response_model=BillOut)
def update_bill_entry(
    bill_id: UUID,
    bill_number: str | None = Form(None),
    amount: str | None = Form(None),
    dealer_id: UUID | None = Form(None),
    branch_id: UUID | None = Form(None),
    paid: str | None = Form(None),
    remove_document: bool = Form(False),
    document: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> dict:
    """Multipart partial update; fields left out of the form are unchanged."""
    try:
        sent: dict[str, object] = {}
        if form_value(bill_number) is not None:
            sent["bill_number"] = bill_number
        if form_value(amount) is not None:
            sent["amount"] = to_decimal(amount, "amount")
        if dealer_id is not None:
            sent["dealer_id"] = dealer_id
        if branch_id is not None:
            sent["branch_id"] = branch_id
        if form_value(paid) is not None:
            sent["paid"] = to_decimal(paid, "paid")
        return update_bill(
            db,
            bill_id,
            BillUpdate(**sent),
            document=read_upload(document, store.max_bytes),
            remove_document=remove_document,
            store=store,
        )
    except DealerDeskError as e:
        raise http_error(e)


@router.patch("/{bill_id}", response_model=BillOut)
def patch_bill_entry(
    bill_id: UUID,
    payload: BillUpdate,
    db: Session = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
) -> dict:
    """JSON partial update; only keys present in the body are applied."""
    try:
        return update_bill(db, bill_id, payload, store=store)
    except DealerDeskError as e:
        raise http_error(e)
