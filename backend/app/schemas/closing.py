from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class ClosingEntryCreate(BaseModel):
    """Everything is optional so presence can be checked in a fixed order.

    ``None`` means "not provided"; ``0`` is a legitimate value.
    """

    branch_id: UUID | None = None
    date: date_type | None = None

    system_sales: Decimal | None = None
    manual_sales: Decimal | None = None
    online_sales: Decimal | None = None
    expenses: Decimal | None = None

    credit_card_payment: Decimal | None = None
    upi_payment: Decimal | None = None

    denom_2000: int | None = None
    denom_500: int | None = None
    denom_200: int | None = None
    denom_100: int | None = None
    denom_50: int | None = None
    denom_20: int | None = None
    denom_10: int | None = None


class DenominationLine(BaseModel):
    denomination: int
    count: int
    value: str


class ClosingEntryOut(BaseModel):
    id: UUID
    branch_id: UUID
    branch_name: str | None
    date: str
    system_sales: str
    manual_sales: str
    online_sales: str
    expenses: str
    credit_card_payment: str
    upi_payment: str
    cash_payment: str
    denominations: list[DenominationLine]
    total_sales: str
    total_payments: str
    discrepancy: str
    is_balanced: bool
    created_at: str | None
