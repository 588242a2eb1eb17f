"""Gallery of uploaded images, kept inline as base64 data URIs."""

from __future__ import annotations

import base64
import time
from io import BytesIO
from pathlib import Path
from typing import Any, List, Optional

from PIL import Image, UnidentifiedImageError

from ..common.errors import NotFoundError
from ..common.models.gallery_item import GalleryItem
from ..common.services.logging import log_event
from .blob_store import GALLERY_KEY, persist_snapshot

_FORMAT_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp", "BMP": "bmp"}


class GalleryRepository:
    """Owns the gallery snapshot and its persistence."""

    def __init__(self, blob_store: Any) -> None:
        self._blob_store = blob_store
        self._items: List[GalleryItem] = self._load()

    def list_items(self) -> List[GalleryItem]:
        return list(self._items)

    def get_item(self, item_id: str) -> Optional[GalleryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def find_by_name(self, name: str) -> Optional[GalleryItem]:
        """First item named ``name`` (case-insensitive, extension optional)."""

        for item in self._items:
            if item.matches(name):
                return item
        return None

    def add_image(
        self,
        *,
        filename: str,
        content: bytes,
        mimetype: Optional[str] = None,
        target_name: Optional[str] = None,
    ) -> GalleryItem:
        """Store an uploaded image.

        With ``target_name`` the upload replaces whatever image currently
        answers to that name (used for category, sub-category and brand
        artwork) and is stored as ``<target_name>.<ext>``.
        """

        if not filename or not filename.strip():
            raise ValueError("filename required")
        if not content:
            raise ValueError("uploaded image is empty")
        detected_type, detected_ext = self._inspect(content)
        mime = detected_type or (mimetype or "application/octet-stream")

        target = (target_name or "").strip()
        if target:
            for stale in [i for i in self._items if i.matches(target)]:
                self._items = [i for i in self._items if i.id != stale.id]
                log_event("info", "gallery.deleted", item_id=stale.id, name=stale.name, replaced=True)
            ext = Path(filename).suffix.lstrip(".") or detected_ext or "jpg"
            name = f"{target}.{ext}"
        else:
            name = filename.strip()

        encoded = base64.b64encode(content).decode("ascii")
        item = GalleryItem(
            id=self._next_id(),
            name=name,
            data=f"data:{mime};base64,{encoded}",
            type=mime,
        )
        self._items = self._items + [item]
        self._save()
        log_event("info", "gallery.added", item_id=item.id, name=item.name, type=item.type, size=len(content))
        return item

    def delete_item(self, item_id: str) -> None:
        remaining = [i for i in self._items if i.id != item_id]
        if len(remaining) == len(self._items):
            raise NotFoundError("gallery item", item_id)
        self._items = remaining
        self._save()
        log_event("info", "gallery.deleted", item_id=item_id)

    def _inspect(self, content: bytes):
        try:
            with Image.open(BytesIO(content)) as image:
                fmt = image.format
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ValueError("uploaded file is not a readable image") from exc
        mime = Image.MIME.get(fmt) if fmt else None
        return mime, _FORMAT_EXTENSIONS.get(fmt or "")

    def _next_id(self) -> str:
        stamp = int(time.time() * 1000)
        existing = {i.id for i in self._items}
        while f"gal-{stamp}" in existing:
            stamp += 1
        return f"gal-{stamp}"

    def _load(self) -> List[GalleryItem]:
        raw = self._blob_store.read(GALLERY_KEY, [])
        if not isinstance(raw, list):
            return []
        items: List[GalleryItem] = []
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("id"):
                continue
            items.append(
                GalleryItem(
                    id=str(entry["id"]),
                    name=str(entry.get("name", "")),
                    data=str(entry.get("data", "")),
                    type=str(entry.get("type", "")),
                )
            )
        return items

    def _save(self) -> None:
        persist_snapshot(self._blob_store, GALLERY_KEY, [i.to_dict() for i in self._items])
