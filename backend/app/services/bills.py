"""Dealer bill lifecycle: create, partial update, record payments, attach documents.

Every check runs before the first write, and every money input is rounded
to the stored scale first.  A bill's amount and paid are flushed together
in one UPDATE and committed once; status and pending are derived from them.
If the commit fails the session is rolled back and the previous row is left
as it was.

Documents are written before the commit and the replaced one is deleted
only after it, so the row never points at a file that is gone.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import (
    DuplicateKey,
    InvalidAmount,
    MissingFields,
    NotFound,
    OutOfRange,
    StorageUnavailable,
)
from backend.app.models.bill import Bill, BillStatus
from backend.app.models.branch import Branch
from backend.app.models.dealer import Dealer
from backend.app.schemas.bill import BillCreate, BillUpdate
from backend.app.services.cash import to_money
from backend.app.services.file_service import DocumentStore, UploadedDocument
from backend.app.services.parties import get_branch, get_dealer

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

_REQUIRED_ON_CREATE = ("dealer_id", "branch_id", "bill_number", "amount")

# Served by GET /api/v1/bills/{bill_id}/document
DOCUMENT_ROUTE = "/api/v1/bills/{bill_id}/document"


def document_url(bill: Bill) -> str | None:
    """Download route for the bill's document, if it has one."""
    if not bill.document_path:
        return None
    return DOCUMENT_ROUTE.format(bill_id=bill.id)


def _bill_to_dict(bill: Bill) -> dict:
    return {
        "id": bill.id,
        "dealer_id": bill.dealer_id,
        "dealer_name": bill.dealer.dealer_name if bill.dealer else None,
        "branch_id": bill.branch_id,
        "branch_name": bill.branch.name if bill.branch else None,
        "bill_number": bill.bill_number,
        "amount": str(bill.amount),
        "paid": str(bill.paid),
        "pending": str(bill.pending),
        "status": bill.status.value,
        "document_path": bill.document_path,
        "document_url": document_url(bill),
        "created_at": bill.created_at.isoformat() if bill.created_at else None,
        "updated_at": bill.updated_at.isoformat() if bill.updated_at else None,
    }


def _load(db: Session, bill_id: UUID) -> Bill:
    bill = db.query(Bill).filter(Bill.id == bill_id).first()
    if not bill:
        raise NotFound("Bill not found")
    return bill


def _non_negative_amount(value: object) -> Decimal:
    amount = to_money(value, "amount")
    if amount < ZERO:
        raise InvalidAmount("Amount must not be negative")
    return amount


def _ensure_unique_number(db: Session, bill_number: str, exclude_id: UUID | None = None) -> None:
    query = db.query(Bill.id).filter(Bill.bill_number == bill_number)
    if exclude_id is not None:
        query = query.filter(Bill.id != exclude_id)
    if query.first():
        raise DuplicateKey("Bill number must be unique")


# ─── Document handling ───────────────────────────────────────────────────────


def release_document(store: DocumentStore, reference: str) -> None:
    """Delete a document no committed bill points at any more.

    A failed delete is handed to the background worker; the hourly orphan
    sweep is the backstop if the queue itself is unreachable.
    """
    try:
        store.delete(reference)
    except StorageUnavailable:
        logger.warning("Could not delete document %s, queueing retry", reference)
        _queue_purge(reference)


def _queue_purge(reference: str) -> None:
    from backend.app.workers.tasks.cleanup import purge_document

    try:
        purge_document.delay(reference)
    except Exception:
        logger.exception("Could not queue purge of %s; left for the orphan sweep", reference)


def _is_duplicate_number(exc: IntegrityError) -> bool:
    # PostgreSQL names the constraint, SQLite names the column
    message = str(exc.orig)
    return "uq_bills_bill_number" in message or "bills.bill_number" in message


def _commit(db: Session, store: DocumentStore, written: str | None) -> None:
    """Commit the bill; on failure roll back and drop the file just written."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if written:
            release_document(store, written)
        if _is_duplicate_number(exc):
            raise DuplicateKey("Bill number must be unique") from exc
        logger.error("Bill commit violated a constraint: %s", exc.orig)
        raise StorageUnavailable("Could not save bill") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if written:
            release_document(store, written)
        logger.error("Bill commit failed: %s", exc)
        raise StorageUnavailable("Could not save bill") from exc


# ─── Create ──────────────────────────────────────────────────────────────────


def create_bill(
    db: Session,
    data: BillCreate,
    document: UploadedDocument | None = None,
    store: DocumentStore | None = None,
) -> dict:
    """Record a new bill as Pending with nothing paid."""
    store = store or DocumentStore()

    bill_number = (data.bill_number or "").strip()
    missing = [
        field
        for field in _REQUIRED_ON_CREATE
        if getattr(data, field) is None or (field == "bill_number" and not bill_number)
    ]
    if missing:
        raise MissingFields(missing)

    amount = _non_negative_amount(data.amount)
    dealer = get_dealer(db, data.dealer_id)
    branch = get_branch(db, data.branch_id)
    _ensure_unique_number(db, bill_number)
    if document is not None:
        store.validate(document)

    reference = store.save(document) if document is not None else None

    bill = Bill(
        dealer_id=dealer.id,
        branch_id=branch.id,
        bill_number=bill_number,
        amount=amount,
        paid=ZERO,
        document_path=reference,
    )
    db.add(bill)
    _commit(db, store, written=reference)
    db.refresh(bill)

    logger.info("Bill %s created for dealer %s, amount %s", bill_number, dealer.dealer_name, amount)
    return _bill_to_dict(bill)


# ─── Read ────────────────────────────────────────────────────────────────────


def get_bill(db: Session, bill_id: UUID) -> dict:
    return _bill_to_dict(_load(db, bill_id))


def get_bill_document(db: Session, bill_id: UUID, store: DocumentStore | None = None) -> Path:
    """Return the local path of a bill's document."""
    store = store or DocumentStore()
    bill = _load(db, bill_id)
    if not bill.document_path or not store.exists(bill.document_path):
        raise NotFound("Bill has no document")
    return store.local_path(bill.document_path)


def list_bills(
    db: Session,
    *,
    search: str | None = None,
    branch_id: UUID | None = None,
    dealer_id: UUID | None = None,
    status: BillStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[dict]:
    """Bills newest first.

    ``search`` matches bill number, dealer name or branch name, ignoring
    case.  ``date_from``/``date_to`` are inclusive days on ``created_at``.
    """
    query = (
        db.query(Bill)
        .join(Dealer, Bill.dealer_id == Dealer.id)
        .join(Branch, Bill.branch_id == Branch.id)
    )
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Bill.bill_number).like(pattern),
                func.lower(Dealer.dealer_name).like(pattern),
                func.lower(Branch.name).like(pattern),
            )
        )
    if branch_id is not None:
        query = query.filter(Bill.branch_id == branch_id)
    if dealer_id is not None:
        query = query.filter(Bill.dealer_id == dealer_id)
    if status is not None:
        query = query.filter(Bill.status == BillStatus(status).value)
    if date_from is not None:
        query = query.filter(
            Bill.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc)
        )
    if date_to is not None:
        query = query.filter(
            Bill.created_at
            < datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
        )

    bills = query.order_by(Bill.created_at.desc(), Bill.bill_number).all()
    return [_bill_to_dict(b) for b in bills]


# ─── Update ──────────────────────────────────────────────────────────────────


def update_bill(
    db: Session,
    bill_id: UUID,
    data: BillUpdate,
    document: UploadedDocument | None = None,
    remove_document: bool = False,
    store: DocumentStore | None = None,
) -> dict:
    """Apply a partial update.

    Fields not present in ``data.model_fields_set`` keep their value.  The
    paid amount must stay within ``[0, amount]`` (checked against the new
    amount when both change); status follows from what is pending.
    """
    store = store or DocumentStore()
    bill = _load(db, bill_id)
    fields = data.provided()

    for field in ("bill_number", "amount", "dealer_id", "branch_id", "paid"):
        if field in fields and fields[field] is None:
            raise MissingFields(field)

    bill_number = bill.bill_number
    if "bill_number" in fields:
        bill_number = str(fields["bill_number"]).strip()
        if not bill_number:
            raise MissingFields("bill_number")
        if bill_number != bill.bill_number:
            _ensure_unique_number(db, bill_number, exclude_id=bill.id)

    amount = bill.amount
    if "amount" in fields:
        amount = _non_negative_amount(fields["amount"])

    dealer_id = bill.dealer_id
    if "dealer_id" in fields:
        dealer_id = get_dealer(db, fields["dealer_id"]).id

    branch_id = bill.branch_id
    if "branch_id" in fields:
        branch_id = get_branch(db, fields["branch_id"]).id

    paid = bill.paid
    if "paid" in fields:
        paid = to_money(fields["paid"], "paid")
        if paid < ZERO or paid > amount:
            raise OutOfRange("Paid amount must be between 0 and the bill amount")
    elif paid > amount:
        raise OutOfRange("Bill amount cannot be lower than the amount already paid")

    if document is not None:
        store.validate(document)

    # ── writes start here ──
    new_reference = store.save(document) if document is not None else None
    old_reference: str | None = None
    if new_reference is not None or remove_document:
        old_reference = bill.document_path
        bill.document_path = new_reference

    bill.bill_number = bill_number
    bill.dealer_id = dealer_id
    bill.branch_id = branch_id
    bill.amount = amount
    bill.paid = paid

    _commit(db, store, written=new_reference)

    if old_reference and old_reference != new_reference:
        release_document(store, old_reference)

    db.refresh(bill)
    logger.info(
        "Bill %s updated: paid %s of %s (%s)",
        bill.bill_number,
        bill.paid,
        bill.amount,
        bill.status.value,
    )
    return _bill_to_dict(bill)
