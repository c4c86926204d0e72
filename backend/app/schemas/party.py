from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


# ─── Branch ──────────────────────────────────────────────────────────────────


class BranchCreate(BaseModel):
    name: str | None = None


class BranchOut(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True


# ─── Dealer ──────────────────────────────────────────────────────────────────


class DealerCreate(BaseModel):
    dealer_name: str | None = None
    phone: str | None = None


class DealerOut(BaseModel):
    id: UUID
    dealer_name: str
    phone: str | None

    class Config:
        from_attributes = True
