"""create_dealer_desk_tables

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=20, scale=4), nullable=False)


def _count(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def upgrade() -> None:
    # ── reference data ────────────────────────────────────────────────
    op.create_table(
        "branches",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "dealers",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("dealer_name", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # ── bills ─────────────────────────────────────────────────────────
    op.create_table(
        "bills",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("dealer_id", sa.Uuid(), sa.ForeignKey("dealers.id"), nullable=False),
        sa.Column("branch_id", sa.Uuid(), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("bill_number", sa.String(100), nullable=False),
        sa.Column("amount", sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column("paid", sa.Numeric(precision=20, scale=4), nullable=False, server_default="0"),
        sa.Column("document_path", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        sa.CheckConstraint("amount >= 0", name="ck_bill_amount_non_negative"),
        sa.CheckConstraint("paid >= 0 AND paid <= amount", name="ck_bill_paid_in_range"),
    )
    op.create_index("ix_bills_dealer", "bills", ["dealer_id"])
    op.create_index("ix_bills_branch", "bills", ["branch_id"])
    op.create_index("ix_bills_created_at", "bills", ["created_at"])

    # ── closing_entries ───────────────────────────────────────────────
    op.create_table(
        "closing_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("branch_id", sa.Uuid(), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        _money("system_sales"),
        _money("manual_sales"),
        _money("online_sales"),
        _money("expenses"),
        _money("credit_card_payment"),
        _money("upi_payment"),
        _money("cash_payment"),
        _count("denom_2000"),
        _count("denom_500"),
        _count("denom_200"),
        _count("denom_100"),
        _count("denom_50"),
        _count("denom_20"),
        _count("denom_10"),
        _money("total_sales"),
        _money("total_payments"),
        _money("discrepancy"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_closing_entries_branch_date", "closing_entries", ["branch_id", "entry_date"]
    )


def downgrade() -> None:
    op.drop_index("ix_closing_entries_branch_date", table_name="closing_entries")
    op.drop_table("closing_entries")

    op.drop_index("ix_bills_created_at", table_name="bills")
    op.drop_index("ix_bills_branch", table_name="bills")
    op.drop_index("ix_bills_dealer", table_name="bills")
    op.drop_table("bills")

    op.drop_table("dealers")
    op.drop_table("branches")
