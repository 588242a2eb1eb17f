"""Key-value persistence for the catalog, order and gallery snapshots."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, ContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..common.errors import StorageError
from ..common.models.blob_record import BlobRecord
from ..common.services.logging import log_event

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "swaisy_products"
ORDERS_KEY = "swaisy_orders"
GALLERY_KEY = "swaisy_gallery"


def _decode(key: str, text: str, default: Any) -> Any:
    if not text or not text.strip():
        return default
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        log_event("warning", "storage.read_failed", key=key, error=str(exc))
        return default


class JsonFileBlobStore:
    """Stores each key as ``<data_dir>/<key>.json``."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def read(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            log_event("warning", "storage.read_failed", key=key, error=str(exc))
            return default
        return _decode(key, text, default)

    def write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            content = json.dumps(value, ensure_ascii=False, indent=2)
            tmp.write_text(content + "\n", encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.debug("write to %s failed", path, exc_info=True)
            raise StorageError(key, str(exc)) from exc


class SqlBlobStore:
    """Stores each key as one row of the ``blob_record`` table."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]]) -> None:
        self._session_factory = session_factory

    def read(self, key: str, default: Any = None) -> Any:
        try:
            with self._session_factory() as session:
                row = session.get(BlobRecord, key)
                text = row.payload if row is not None else None
        except SQLAlchemyError as exc:
            log_event("warning", "storage.read_failed", key=key, error=str(exc))
            return default
        if text is None:
            return default
        return _decode(key, text, default)

    def write(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
            with self._session_factory() as session:
                row = session.get(BlobRecord, key)
                if row is None:
                    session.add(BlobRecord(key=key, payload=payload))
                else:
                    row.payload = payload
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            logger.debug("write of %s failed", key, exc_info=True)
            raise StorageError(key, str(exc)) from exc


def persist_snapshot(store: Any, key: str, value: Any) -> bool:
    """Write ``value`` and report failure instead of raising.

    Callers keep their in-memory state when persistence fails; nothing is
    rolled back.
    """

    try:
        store.write(key, value)
    except StorageError as exc:
        log_event("error", "storage.write_failed", key=key, error=exc.reason)
        return False
    return True
