from __future__ import annotations

from fastapi import HTTPException, UploadFile, status

from backend.app.core.exceptions import (
    DealerDeskError,
    DuplicateKey,
    InvalidDocument,
    NotFound,
)
from backend.app.services.file_service import UploadedDocument


def http_error(exc: DealerDeskError) -> HTTPException:
    """Translate a service-level input error into an HTTP response."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, DuplicateKey):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, InvalidDocument) and exc.too_large:
        code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


def form_value(raw: str | None) -> str | None:
    """Blank form fields count as not sent."""
    if raw is None or not raw.strip():
        return None
    return raw


def read_upload(
    upload: UploadFile | None, max_bytes: int | None = None
) -> UploadedDocument | None:
    """Read at most one byte past *max_bytes*; the store rejects anything longer."""
    if upload is None or not upload.filename:
        return None
    limit = -1 if max_bytes is None else max_bytes + 1
    return UploadedDocument(
        filename=upload.filename,
        content_type=upload.content_type or "",
        data=upload.file.read(limit),
    )
