from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import DuplicateKey, MissingFields, NotFound
from backend.app.models.branch import Branch
from backend.app.models.dealer import Dealer
from backend.app.schemas.party import BranchCreate, BranchOut, DealerCreate, DealerOut

logger = logging.getLogger(__name__)


# ─── Branches ────────────────────────────────────────────────────────────────


def create_branch(db: Session, data: BranchCreate) -> BranchOut:
    name = (data.name or "").strip()
    if not name:
        raise MissingFields("name")
    if db.query(Branch).filter(Branch.name == name).first():
        raise DuplicateKey(f"Branch '{name}' already exists")

    branch = Branch(name=name)
    db.add(branch)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateKey(f"Branch '{name}' already exists")
    db.refresh(branch)
    logger.info("Branch created: %s", name)
    return BranchOut.model_validate(branch)


def list_branches(db: Session) -> list[BranchOut]:
    rows = db.query(Branch).order_by(Branch.name).all()
    return [BranchOut.model_validate(b) for b in rows]


def get_branch(db: Session, branch_id: UUID) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if not branch:
        raise NotFound("Branch not found")
    return branch


# ─── Dealers ─────────────────────────────────────────────────────────────────


def create_dealer(db: Session, data: DealerCreate) -> DealerOut:
    name = (data.dealer_name or "").strip()
    if not name:
        raise MissingFields("dealer_name")
    if db.query(Dealer).filter(Dealer.dealer_name == name).first():
        raise DuplicateKey(f"Dealer '{name}' already exists")

    dealer = Dealer(dealer_name=name, phone=data.phone)
    db.add(dealer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateKey(f"Dealer '{name}' already exists")
    db.refresh(dealer)
    logger.info("Dealer created: %s", name)
    return DealerOut.model_validate(dealer)


def list_dealers(db: Session) -> list[DealerOut]:
    rows = db.query(Dealer).order_by(Dealer.dealer_name).all()
    return [DealerOut.model_validate(d) for d in rows]


def get_dealer(db: Session, dealer_id: UUID) -> Dealer:
    dealer = db.query(Dealer).filter(Dealer.id == dealer_id).first()
    if not dealer:
        raise NotFound("Dealer not found")
    return dealer
