from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    case,
    func,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.core.database import Base

ZERO = Decimal("0")


class BillStatus(str, enum.Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


def status_for(pending: Decimal) -> BillStatus:
    return BillStatus.COMPLETED if pending == ZERO else BillStatus.PENDING


class Bill(Base):
    """A dealer invoice.

    ``pending`` and ``status`` are never stored: both follow from ``amount``
    and ``paid``, in Python and in SQL.
    """

    __tablename__ = "bills"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    dealer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("dealers.id"), nullable=False
    )
    branch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("branches.id"), nullable=False
    )
    bill_number: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    paid: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=ZERO
    )
    # Relative reference inside the document store
    document_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    dealer: Mapped["Dealer"] = relationship()  # noqa: F821
    branch: Mapped["Branch"] = relationship()  # noqa: F821

    __table_args__ = (
        UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        CheckConstraint("amount >= 0", name="ck_bill_amount_non_negative"),
        CheckConstraint("paid >= 0 AND paid <= amount", name="ck_bill_paid_in_range"),
        Index("ix_bills_dealer", "dealer_id"),
        Index("ix_bills_branch", "branch_id"),
        Index("ix_bills_created_at", "created_at"),
    )

    @hybrid_property
    def pending(self) -> Decimal:
        return self.amount - (self.paid or ZERO)

    @pending.inplace.expression
    @classmethod
    def _pending_expression(cls):
        return cls.amount - cls.paid

    @hybrid_property
    def status(self) -> BillStatus:
        return status_for(self.pending)

    @status.inplace.expression
    @classmethod
    def _status_expression(cls):
        return case(
            (cls.amount - cls.paid == 0, BillStatus.COMPLETED.value),
            else_=BillStatus.PENDING.value,
        )
