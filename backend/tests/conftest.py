"""Shared test fixtures.

Tests run against an in-memory SQLite database (override with
``TEST_DATABASE_URL``); the schema is created before and dropped after every
test so tests never see each other's rows.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from decimal import Decimal  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from backend.app.core.database import Base, SessionLocal, engine, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app.models.branch import Branch  # noqa: E402
from backend.app.models.closing import ClosingEntry  # noqa: E402,F401
from backend.app.models.dealer import Dealer  # noqa: E402
from backend.app.schemas.bill import BillCreate  # noqa: E402
from backend.app.services.bills import create_bill  # noqa: E402
from backend.app.services.file_service import (  # noqa: E402
    DocumentStore,
    UploadedDocument,
    get_document_store,
)


# ─── DB session on a fresh schema ─────────────────────────────────────────────


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(root=tmp_path / "files")


@pytest.fixture()
def client(db: Session, store: DocumentStore) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session and document store."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_document_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Reference data ───────────────────────────────────────────────────────────


@pytest.fixture()
def branch(db: Session) -> Branch:
    b = Branch(name="Anna Nagar")
    db.add(b)
    db.commit()
    return b


@pytest.fixture()
def other_branch(db: Session) -> Branch:
    b = Branch(name="Velachery")
    db.add(b)
    db.commit()
    return b


@pytest.fixture()
def dealer(db: Session) -> Dealer:
    d = Dealer(dealer_name="Sri Murugan Traders", phone="9840012345")
    db.add(d)
    db.commit()
    return d


@pytest.fixture()
def other_dealer(db: Session) -> Dealer:
    d = Dealer(dealer_name="Lakshmi Agencies")
    db.add(d)
    db.commit()
    return d


# ─── Documents & bills ────────────────────────────────────────────────────────


@pytest.fixture()
def make_bill(
    db: Session, dealer: Dealer, branch: Branch, store: DocumentStore
) -> Callable[..., dict]:
    """Create a bill through the service and return its dict."""

    def _make(
        bill_number: str = "INV-001",
        amount: str = "1000",
        document: UploadedDocument | None = None,
    ) -> dict:
        return create_bill(
            db,
            BillCreate(
                dealer_id=dealer.id,
                branch_id=branch.id,
                bill_number=bill_number,
                amount=Decimal(amount),
            ),
            document=document,
            store=store,
        )

    return _make


