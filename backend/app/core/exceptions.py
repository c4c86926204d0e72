"""Error taxonomy shared by the services and the HTTP layer.

Validation errors subclass ``ValueError`` so callers that only care about
"bad input" can keep catching ``ValueError``.  Storage failures do not.
"""

from __future__ import annotations


class DealerDeskError(ValueError):
    """Base class for input errors detected before any write."""


class MissingFields(DealerDeskError):
    def __init__(self, fields: list[str] | str) -> None:
        if isinstance(fields, str):
            fields = [fields]
        self.fields = list(fields)
        super().__init__(f"Missing required field(s): {', '.join(self.fields)}")


class MissingField(MissingFields):
    """A single required field is absent; ``field`` names the first one found."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__([field])


class InvalidAmount(DealerDeskError):
    pass


class InvalidDocument(DealerDeskError):
    def __init__(self, message: str, *, too_large: bool = False) -> None:
        self.too_large = too_large
        super().__init__(message)


class DuplicateKey(DealerDeskError):
    pass


class OutOfRange(DealerDeskError):
    pass


class NotFound(DealerDeskError):
    pass


class StorageUnavailable(Exception):
    """The database or the document store could not complete a write."""
