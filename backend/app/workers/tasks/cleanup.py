"""Document cleanup tasks.

Both tasks are idempotent: deleting a document that is already gone is a
no-op, and a document still referenced by a bill is never touched.
"""

from __future__ import annotations

import logging
import time

from backend.app.core.config import settings
from backend.app.core.exceptions import StorageUnavailable
from backend.app.models import branch, dealer  # noqa: F401
from backend.app.models.bill import Bill
from backend.app.workers.celery_app import celery

logger = logging.getLogger(__name__)


def _is_referenced(db, reference: str) -> bool:
    return db.query(Bill.id).filter(Bill.document_path == reference).first() is not None


@celery.task(
    name="backend.app.workers.tasks.cleanup.purge_document",
    autoretry_for=(StorageUnavailable,),
    retry_backoff=True,
    max_retries=5,
)
def purge_document(reference: str) -> dict:
    """Delete a document a bill stopped pointing at.

    Queued when the inline delete after a bill commit fails.
    """
    from backend.app.core.database import SessionLocal
    from backend.app.services.file_service import DocumentStore

    db = SessionLocal()
    try:
        if _is_referenced(db, reference):
            logger.info("Document %s is referenced again, keeping it", reference)
            return {"status": "kept", "reference": reference}
    finally:
        db.close()

    DocumentStore().delete(reference)
    return {"status": "deleted", "reference": reference}


@celery.task(name="backend.app.workers.tasks.cleanup.sweep_orphan_documents")
def sweep_orphan_documents(root: str | None = None, grace_minutes: int | None = None) -> dict:
    """Delete stored documents no bill references.

    Files newer than the grace period are skipped so an upload whose bill
    is still being committed is not removed underneath it.
    """
    from backend.app.core.database import SessionLocal
    from backend.app.services.file_service import DocumentStore

    store = DocumentStore(root=root)
    grace = grace_minutes if grace_minutes is not None else settings.ORPHAN_GRACE_MINUTES
    cutoff = time.time() - grace * 60

    db = SessionLocal()
    try:
        referenced = {
            path
            for (path,) in db.query(Bill.document_path)
            .filter(Bill.document_path.isnot(None))
            .all()
        }
    finally:
        db.close()

    removed = 0
    for reference, mtime in store.iter_references():
        if reference in referenced or mtime > cutoff:
            continue
        try:
            store.delete(reference)
        except StorageUnavailable:
            logger.warning("Could not delete orphan document %s", reference)
            continue
        removed += 1

    if removed:
        logger.info("Removed %d orphan document(s)", removed)
    return {"removed": removed}
