"""Catalog store: the current product snapshot keyed by id."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..common.errors import NotFoundError
from ..common.models.product import Product
from ..common.services.logging import log_event
from .blob_store import PRODUCTS_KEY, persist_snapshot
from .catalog_importer import ImportResult, extract_products, import_catalog

SEED_CATALOG_ROWS: List[List[str]] = [
    ["ITEM NAME", "item name ar", "desc", "desc ar", "CATEGORY", "category ar", "sub category",
     "sub category ar", "BRAND", "WEIGHT", "packaging", "unit per pack", "min qty", "in/out stock",
     "", "price", "tva", "imag", "notes"],
    ["Rice Premium", "أرز ممتاز", "Long grain rice", "أرز حبة طويلة", "Grains", "حبوب", "Rice", "أرز",
     "Swaisy", "1kg", "bag", "10", "", "in", "", "2.5", "0", "", ""],
    ["Olive Oil", "زيت زيتون", "Extra virgin", "زيت زيتون بكر", "Oils", "زيوت", "Olive Oil", "زيت زيتون",
     "Swaisy", "500ml", "bottle", "12", "", "in", "", "8.0", "11", "", ""],
    ["Tomato Paste", "معجون طماطم", "Double concentrated", "معجون طماطم", "Canned", "معلبات", "Paste", "معجون",
     "Swaisy", "400g", "can", "24", "", "in", "", "1.2", "11", "", ""],
]


class ProductStore:
    """Holds the catalog as an id -> Product mapping.

    The whole mapping is swapped with a single assignment on replace, so a
    reader sees either the old or the new catalog. Concurrent updates are
    last-write-wins.
    """

    def __init__(self, blob_store: Any, gallery: Optional[Any] = None) -> None:
        self._blob_store = blob_store
        self._gallery = gallery
        self._products: Dict[str, Product] = self._load()

    def __len__(self) -> int:
        return len(self._products)

    def list_products(self, *, apply_gallery: bool = True) -> List[Product]:
        snapshot = list(self._products.values())
        if not apply_gallery or self._gallery is None:
            return snapshot
        return [self._with_gallery_image(p) for p in snapshot]

    def get_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("product", product_id)
        return product

    def replace_all(self, products: Iterable[Product]) -> int:
        fresh = {p.id: p for p in products}
        self._products = fresh
        self._save()
        return len(fresh)

    def update_product(self, product: Product) -> Product:
        if product.id not in self._products:
            raise NotFoundError("product", product.id)
        updated = dict(self._products)
        updated[product.id] = product
        self._products = updated
        self._save()
        log_event("info", "product.updated", product_id=product.id)
        return product

    def merge_special_offers(self, offers: Iterable[Product]) -> int:
        """Flag offers already in the catalog and append the rest.

        A matching record keeps its own fields, gains ``is_special_offer``,
        and takes the offer price when that price is positive.
        """

        merged = dict(self._products)
        count = 0
        for offer in offers:
            count += 1
            current = merged.get(offer.id)
            if current is None:
                merged[offer.id] = offer.with_changes(is_special_offer=True)
                continue
            changes: Dict[str, Any] = {"is_special_offer": True}
            if offer.default_price > 0:
                changes["default_price"] = offer.default_price
            merged[offer.id] = current.with_changes(**changes)
        self._products = merged
        self._save()
        return count

    def import_rows(self, rows: Sequence[Sequence[Any]], *, special_offers: bool = False) -> ImportResult:
        result = import_catalog(rows)
        if special_offers:
            self.merge_special_offers(result.products)
            log_event("info", "catalog.special_offers_merged", count=result.count, catalog_size=len(self))
        else:
            self.replace_all(result.products)
            log_event("info", "catalog.imported", count=result.count, layout=result.summary()["layout"])
        return result

    def seed_if_empty(self) -> bool:
        if self._products:
            return False
        self.replace_all(extract_products(SEED_CATALOG_ROWS).products)
        log_event("info", "catalog.seeded", count=len(self))
        return True

    def _with_gallery_image(self, product: Product) -> Product:
        item = self._gallery.find_by_name(product.name)
        if item is None:
            return product
        return product.with_changes(image_url=item.data)

    def _load(self) -> Dict[str, Product]:
        raw = self._blob_store.read(PRODUCTS_KEY, [])
        if not isinstance(raw, list):
            return {}
        products: Dict[str, Product] = {}
        for entry in raw:
            try:
                product = Product.from_dict(entry)
            except ValueError as exc:
                log_event("warning", "storage.record_skipped", key=PRODUCTS_KEY, error=str(exc))
                continue
            products[product.id] = product
        return products

    def _save(self) -> None:
        persist_snapshot(self._blob_store, PRODUCTS_KEY, [p.to_dict() for p in self._products.values()])
