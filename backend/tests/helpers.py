"""Helpers shared by the test modules."""
from __future__ import annotations

from sqlalchemy.orm import Session

from backend.app.models.bill import Bill
from backend.app.services.file_service import DocumentStore, UploadedDocument


def pdf_document(name: str = "bill.pdf", data: bytes = b"%PDF-1.4 test") -> UploadedDocument:
    return UploadedDocument(filename=name, content_type="application/pdf", data=data)


def stored_files(store: DocumentStore) -> list[str]:
    return sorted(ref for ref, _ in store.iter_references())


def bill_row(db: Session, bill_id) -> Bill:
    db.expire_all()
    return db.get(Bill, bill_id)
