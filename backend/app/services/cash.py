"""Closing cash arithmetic: note counts to cash, sales vs. payments.

Pure functions, no database access.  Missing figures count as zero here;
required-field checks belong to the closing entry recorder.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from backend.app.core.exceptions import InvalidAmount

DENOMINATIONS: tuple[int, ...] = (2000, 500, 200, 100, 50, 20, 10)

SALES_FIELDS: tuple[str, ...] = ("system_sales", "manual_sales", "online_sales")
PAYMENT_FIELDS: tuple[str, ...] = (
    "credit_card_payment",
    "upi_payment",
    "cash_payment",
    "expenses",
)

ZERO = Decimal("0")

# Scale of the Numeric(20, 4) money columns
MONEY_QUANTUM = Decimal("0.0001")
MONEY_LIMIT = Decimal("1e16")


@dataclass(frozen=True)
class ReconciliationTotals:
    total_sales: Decimal
    total_payments: Decimal
    discrepancy: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.discrepancy == ZERO


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Coerce *value* to ``Decimal`` or raise ``InvalidAmount``."""
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f"{field} must be a number")
    if not result.is_finite():
        raise InvalidAmount(f"{field} must be a number")
    return result


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Like :func:`to_decimal`, rounded half-up to the stored 4 decimals.

    Range checks and totals must run on this value so that what is compared
    is exactly what the database keeps.
    """
    result = to_decimal(value, field)
    if abs(result) >= MONEY_LIMIT:
        raise InvalidAmount(f"{field} is too large")
    return result.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _count(denomination: int, raw: Any) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise InvalidAmount(f"Count for {denomination} notes must be a whole number")
    if isinstance(raw, int):
        count = raw
    else:
        value = to_decimal(raw, f"count for {denomination} notes")
        if value != value.to_integral_value():
            raise InvalidAmount(f"Count for {denomination} notes must be a whole number")
        count = int(value)
    if count < 0:
        raise InvalidAmount(f"Count for {denomination} notes must not be negative")
    return count


def _face(denomination: Any) -> int:
    try:
        face = int(denomination)
    except (TypeError, ValueError):
        raise InvalidAmount(f"Unknown denomination: {denomination}")
    if face not in DENOMINATIONS:
        raise InvalidAmount(f"Unknown denomination: {denomination}")
    return face


def _normalize_counts(counts: Mapping[int, Any]) -> dict[int, int]:
    by_face = {_face(d): raw for d, raw in counts.items()}
    return {d: _count(d, by_face.get(d)) for d in DENOMINATIONS}


def compute_cash(counts: Mapping[int, Any]) -> Decimal:
    """Total cash for a set of note counts, e.g. ``{2000: 1, 500: 2}`` -> 3000."""
    normalized = _normalize_counts(counts)
    return Decimal(sum(d * c for d, c in normalized.items()))


def denomination_breakdown(counts: Mapping[int, Any]) -> list[dict]:
    """One line per face value, highest first."""
    normalized = _normalize_counts(counts)
    return [
        {"denomination": d, "count": c, "value": Decimal(d * c)}
        for d, c in normalized.items()
    ]


def _sum(figures: Mapping[str, Any], fields: tuple[str, ...]) -> Decimal:
    total = ZERO
    for field in fields:
        raw = figures.get(field)
        if raw is not None:
            total += to_money(raw, field)
    return total


def compute_totals(
    sales: Mapping[str, Any], payments: Mapping[str, Any]
) -> ReconciliationTotals:
    """Sum both sides of the till and their signed difference.

    discrepancy = total_payments - total_sales; positive means more was
    collected than was sold.
    """
    total_sales = _sum(sales, SALES_FIELDS)
    total_payments = _sum(payments, PAYMENT_FIELDS)
    return ReconciliationTotals(
        total_sales=total_sales,
        total_payments=total_payments,
        discrepancy=total_payments - total_sales,
    )
