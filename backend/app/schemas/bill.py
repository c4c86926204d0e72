from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


# ─── Requests ────────────────────────────────────────────────────────────────


class BillCreate(BaseModel):
    """Fields are optional here so the service can report every missing one."""

    dealer_id: UUID | None = None
    branch_id: UUID | None = None
    bill_number: str | None = None
    amount: Decimal | None = None


class BillUpdate(BaseModel):
    """Partial update.

    Only fields present in ``model_fields_set`` are applied, so an explicit
    ``amount=0`` or ``paid=0`` is honoured while an omitted field is kept.
    """

    bill_number: str | None = None
    amount: Decimal | None = None
    dealer_id: UUID | None = None
    branch_id: UUID | None = None
    paid: Decimal | None = None

    def provided(self) -> dict[str, object]:
        return {name: getattr(self, name) for name in self.model_fields_set}


# ─── Response ────────────────────────────────────────────────────────────────


class BillOut(BaseModel):
    id: UUID
    dealer_id: UUID
    dealer_name: str | None
    branch_id: UUID
    branch_name: str | None
    bill_number: str
    amount: str
    paid: str
    pending: str
    status: str
    document_path: str | None
    document_url: str | None
    created_at: str | None
    updated_at: str | None
