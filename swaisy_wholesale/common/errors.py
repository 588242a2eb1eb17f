"""Exceptions shared by the catalog, order and gallery services."""

from __future__ import annotations

from typing import Optional


class WholesaleError(Exception):
    """Base class for errors raised by the ordering core."""


class CatalogImportError(WholesaleError):
    """Raised when an uploaded sheet yields no usable product rows."""

    REQUIRED_COLUMNS = ("Name", "Price")

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            cols = " and ".join(f"'{c}'" for c in self.REQUIRED_COLUMNS)
            message = f"No valid products found. Ensure columns {cols} exist."
        super().__init__(message)


class SpreadsheetError(WholesaleError):
    """Raised when an uploaded file cannot be read as a sheet."""


class NotFoundError(WholesaleError):
    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class StorageError(WholesaleError):
    """Raised by a blob store when a snapshot cannot be written."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"failed to persist {key}: {reason}")
        self.key = key
        self.reason = reason
