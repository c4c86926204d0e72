from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Uuid,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base


def _money() -> Mapped[Decimal]:
    return mapped_column(Numeric(precision=20, scale=4), nullable=False)


def _count() -> Mapped[int]:
    return mapped_column(Integer, nullable=False, default=0)


class ClosingEntry(Base):
    """End-of-day cash reconciliation snapshot for one branch."""

    __tablename__ = "closing_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("branches.id"), nullable=False
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Reported sales
    system_sales: Mapped[Decimal] = _money()
    manual_sales: Mapped[Decimal] = _money()
    online_sales: Mapped[Decimal] = _money()

    # Reported payments
    expenses: Mapped[Decimal] = _money()
    credit_card_payment: Mapped[Decimal] = _money()
    upi_payment: Mapped[Decimal] = _money()
    cash_payment: Mapped[Decimal] = _money()

    # Notes counted in the till
    denom_2000: Mapped[int] = _count()
    denom_500: Mapped[int] = _count()
    denom_200: Mapped[int] = _count()
    denom_100: Mapped[int] = _count()
    denom_50: Mapped[int] = _count()
    denom_20: Mapped[int] = _count()
    denom_10: Mapped[int] = _count()

    total_sales: Mapped[Decimal] = _money()
    total_payments: Mapped[Decimal] = _money()
    discrepancy: Mapped[Decimal] = _money()

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    branch: Mapped["Branch"] = relationship()  # noqa: F821

    __table_args__ = (
        Index("ix_closing_entries_branch_date", "branch_id", "entry_date"),
    )

    def denomination_counts(self) -> dict[int, int]:
        return {
            2000: self.denom_2000,
            500: self.denom_500,
            200: self.denom_200,
            100: self.denom_100,
            50: self.denom_50,
            20: self.denom_20,
            10: self.denom_10,
        }


@event.listens_for(ClosingEntry, "before_update")
def _refuse_update(mapper, connection, target: ClosingEntry) -> None:
    raise ValueError("Closing entries cannot be modified once recorded")
