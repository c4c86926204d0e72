"""Bill document storage on local disk.

References handed out by :meth:`DocumentStore.save` are paths relative to
the storage root (``dealerbills/bill_<ts>-<rand>.pdf``) and are what the
``bills.document_path`` column holds.
"""

from __future__ import annotations

import logging
import os
import secrets
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from backend.app.core.config import settings
from backend.app.core.exceptions import InvalidDocument, StorageUnavailable

logger = logging.getLogger(__name__)

BILL_DOCUMENT_DIR = "dealerbills"

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".pdf"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}


@dataclass(frozen=True)
class UploadedDocument:
    filename: str
    content_type: str
    data: bytes


class DocumentStore:
    """Store, read and delete bill documents under the configured root."""

    def __init__(self, root: str | Path | None = None, max_bytes: int | None = None) -> None:
        self._root = Path(root or settings.FILE_STORAGE_PATH)
        self._max_bytes = max_bytes if max_bytes is not None else settings.MAX_DOCUMENT_BYTES

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def validate(self, document: UploadedDocument) -> str:
        """Return the normalized extension or raise ``InvalidDocument``."""
        ext = PurePosixPath(document.filename or "").suffix.lower()
        content_type = (document.content_type or "").split(";")[0].strip().lower()
        if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidDocument("Only images (jpeg, jpg, png) and PDF files are allowed")
        if len(document.data) > self._max_bytes:
            raise InvalidDocument(
                f"Document exceeds the {self._max_bytes // (1024 * 1024)} MB limit",
                too_large=True,
            )
        return ext

    def save(self, document: UploadedDocument) -> str:
        """Persist *document* and return its reference."""
        ext = self.validate(document)
        suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        reference = f"{BILL_DOCUMENT_DIR}/bill_{suffix}{ext}"
        dest = self._path(reference)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(document.data)
        except OSError as exc:
            logger.error("Could not write document %s: %s", reference, exc)
            raise StorageUnavailable("Document storage is not accessible") from exc
        logger.info("Stored document %s (%d bytes)", reference, len(document.data))
        return reference

    def read(self, reference: str) -> bytes:
        return self._path(reference).read_bytes()

    def exists(self, reference: str) -> bool:
        return self._path(reference).exists()

    def delete(self, reference: str) -> None:
        """Remove *reference*; deleting something already gone is a no-op."""
        path = self._path(reference)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageUnavailable(f"Could not delete document {reference}") from exc
        logger.info("Deleted document %s", reference)

    def local_path(self, reference: str) -> Path:
        return self._path(reference)

    def iter_references(self) -> Iterator[tuple[str, float]]:
        """Yield ``(reference, mtime)`` for every stored bill document."""
        folder = self._root / BILL_DOCUMENT_DIR
        if not folder.is_dir():
            return
        for path in folder.iterdir():
            if path.is_file():
                yield f"{BILL_DOCUMENT_DIR}/{path.name}", path.stat().st_mtime

    def _path(self, reference: str) -> Path:
        rel = PurePosixPath(reference)
        if rel.is_absolute() or ".." in rel.parts:
            raise InvalidDocument(f"Invalid document reference: {reference}")
        return self._root.joinpath(*rel.parts)


def get_document_store() -> DocumentStore:
    return DocumentStore()
