from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    DuplicateKey,
    InvalidAmount,
    MissingField,
    NotFound,
    StorageUnavailable,
)
from backend.app.models.closing import ClosingEntry
from backend.app.schemas.closing import ClosingEntryCreate
from backend.app.services.cash import (
    DENOMINATIONS,
    compute_cash,
    compute_totals,
    denomination_breakdown,
    to_money,
)
from backend.app.services.parties import get_branch

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

MONEY_FIELDS: tuple[str, ...] = (
    "system_sales",
    "manual_sales",
    "online_sales",
    "expenses",
    "credit_card_payment",
    "upi_payment",
)
DENOMINATION_FIELDS: tuple[str, ...] = tuple(f"denom_{d}" for d in DENOMINATIONS)

# Order in which absent inputs are reported
REQUIRED_FIELDS: tuple[str, ...] = ("branch_id", "date") + MONEY_FIELDS + DENOMINATION_FIELDS


def _entry_to_dict(entry: ClosingEntry) -> dict:
    return {
        "id": entry.id,
        "branch_id": entry.branch_id,
        "branch_name": entry.branch.name if entry.branch else None,
        "date": entry.entry_date.isoformat(),
        "system_sales": str(entry.system_sales),
        "manual_sales": str(entry.manual_sales),
        "online_sales": str(entry.online_sales),
        "expenses": str(entry.expenses),
        "credit_card_payment": str(entry.credit_card_payment),
        "upi_payment": str(entry.upi_payment),
        "cash_payment": str(entry.cash_payment),
        "denominations": [
            {"denomination": line["denomination"], "count": line["count"], "value": str(line["value"])}
            for line in denomination_breakdown(entry.denomination_counts())
        ],
        "total_sales": str(entry.total_sales),
        "total_payments": str(entry.total_payments),
        "discrepancy": str(entry.discrepancy),
        "is_balanced": Decimal(str(entry.discrepancy)) == ZERO,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def first_missing_field(data: ClosingEntryCreate) -> str | None:
    for field in REQUIRED_FIELDS:
        if getattr(data, field) is None:
            return field
    return None


def submit_closing_entry(db: Session, data: ClosingEntryCreate) -> dict:
    """Validate, reconcile and store one closing snapshot for a branch/day."""
    missing = first_missing_field(data)
    if missing:
        raise MissingField(missing)

    figures: dict[str, Decimal] = {}
    for field in MONEY_FIELDS:
        value = to_money(getattr(data, field), field)
        if value < ZERO:
            raise InvalidAmount(f"{field} must not be negative")
        figures[field] = value

    counts = {d: getattr(data, f"denom_{d}") for d in DENOMINATIONS}
    cash_payment = compute_cash(counts)
    totals = compute_totals(figures, {**figures, "cash_payment": cash_payment})

    branch = get_branch(db, data.branch_id)
    if settings.CLOSING_ENTRY_UNIQUE_PER_DAY:
        existing = (
            db.query(ClosingEntry.id)
            .filter(ClosingEntry.branch_id == branch.id, ClosingEntry.entry_date == data.date)
            .first()
        )
        if existing:
            raise DuplicateKey(
                f"A closing entry for {branch.name} on {data.date.isoformat()} already exists"
            )

    entry = ClosingEntry(
        branch_id=branch.id,
        entry_date=data.date,
        cash_payment=cash_payment,
        total_sales=totals.total_sales,
        total_payments=totals.total_payments,
        discrepancy=totals.discrepancy,
        **figures,
        **{f"denom_{d}": int(c) for d, c in counts.items()},
    )
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Closing entry commit failed: %s", exc)
        raise StorageUnavailable("Could not save closing entry") from exc
    db.refresh(entry)

    if totals.is_balanced:
        logger.info("Closing entry for %s on %s balanced", branch.name, data.date)
    else:
        logger.warning(
            "Closing entry for %s on %s off by %s (sales %s, payments %s)",
            branch.name,
            data.date,
            totals.discrepancy,
            totals.total_sales,
            totals.total_payments,
        )
    return _entry_to_dict(entry)


def get_closing_entry(db: Session, entry_id: UUID) -> dict:
    entry = db.query(ClosingEntry).filter(ClosingEntry.id == entry_id).first()
    if not entry:
        raise NotFound("Closing entry not found")
    return _entry_to_dict(entry)


def list_closing_entries(
    db: Session,
    *,
    branch_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[dict]:
    query = db.query(ClosingEntry)
    if branch_id is not None:
        query = query.filter(ClosingEntry.branch_id == branch_id)
    if date_from is not None:
        query = query.filter(ClosingEntry.entry_date >= date_from)
    if date_to is not None:
        query = query.filter(ClosingEntry.entry_date <= date_to)
    entries = query.order_by(ClosingEntry.entry_date.desc(), ClosingEntry.created_at.desc()).all()
    return [_entry_to_dict(e) for e in entries]
