"""Turns spreadsheet rows into normalized catalog products.

Rows arrive as lists of raw cells (the first sheet of a CSV/XLS/XLSX file).
The importer looks for a header row in the first rows of the sheet, binds
product fields to columns through synonym lists, and falls back to the fixed
column layout of the catalog template when no header is recognized.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..common.errors import CatalogImportError
from ..common.models.product import STOCK_IN, STOCK_OUT, Product

HEADER_SCAN_ROWS = 20

NAME_TOKENS = ("item name", "name", "product", "sku")
CATEGORY_TOKENS = ("category", "cat", "section")
BRAND_TOKENS = ("brand", "vendor")

FIELD_SYNONYMS: Dict[str, Sequence[str]] = {
    "name": ("item name", "name", "product name", "item", "product", "description", "english name"),
    "name_ar": ("item name ar", "name ar", "arabic name", "name_ar", "item name (ar)", "product name ar"),
    "price": ("price", "selling price", "unit price", "cost", "final price", "wholesale price"),
    "category": ("category", "cat", "main category", "family", "section", "group", "department"),
    "category_ar": ("category ar", "category_ar", "cat ar", "category (ar)", "section ar"),
    "sub_category": ("sub category", "subcategory", "sub_category", "sub-category", "type", "subtype"),
    "sub_category_ar": ("sub category ar", "sub_category_ar", "subcategory ar", "sub-category ar"),
    "brand": ("brand", "brand name", "vendor", "manufacturer", "maker"),
    "stock": ("in/out stock", "stock", "status", "stock status", "availability", "quantity", "qty"),
    "image": ("imag", "image", "photo", "picture", "image url", "url", "img", "link"),
    "desc": ("desc", "description", "details", "info", "specification"),
    "desc_ar": ("desc ar", "description ar", "description_ar"),
    "weight": ("weight", "net weight", "size", "gross weight", "capacity", "volume", "vol"),
    "packaging": ("packaging", "package", "pack type", "packing"),
    "unit_per_pack": ("unit per pack", "items per pack", "qty per pack", "unit", "units", "pieces"),
    "notes": ("notes", "note", "remarks", "comments", "extra info"),
}

# Bound only when none of the field's regular synonyms appear in the header.
FALLBACK_SYNONYMS: Dict[str, Sequence[str]] = {
    "name": ("sku",),
}

# Column layout of the catalog template, used when no header row is found.
TEMPLATE_COLUMNS: Dict[str, int] = {
    "name": 0,
    "name_ar": 1,
    "desc": 2,
    "desc_ar": 3,
    "category": 4,
    "category_ar": 5,
    "sub_category": 6,
    "sub_category_ar": 7,
    "brand": 8,
    "weight": 9,
    "packaging": 10,
    "unit_per_pack": 11,
    "stock": 13,
    "price": 15,
    "image": 17,
    "notes": 18,
}

STOCK_IN_MARKERS = ("yes", "true", "in stock", "available", "in", "active", "1")
STOCK_OUT_VALUES = frozenset({"no", "false", "out of stock", "unavailable", "out", "0", "inactive"})

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_SUB_CATEGORY = "General"
DEFAULT_BRAND = "Generic"

_DRIVE_RE = re.compile(r"drive\.google\.com/(?:file/d/|open\?id=)([a-zA-Z0-9_-]+)")
_PRICE_STRIP_RE = re.compile(r"[^0-9.]")
_PRICE_NUMBER_RE = re.compile(r"\d*\.?\d+")
_ID_RE = re.compile(r"[^A-Z0-9]+")


@dataclass
class ImportResult:
    products: List[Product] = field(default_factory=list)
    header_row: Optional[int] = None

    @property
    def count(self) -> int:
        return len(self.products)

    @property
    def used_template_layout(self) -> bool:
        return self.header_row is None

    def summary(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "headerRow": self.header_row,
            "layout": "template" if self.used_template_layout else "header",
        }


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def find_header_row(rows: Sequence[Sequence[Any]]) -> Optional[int]:
    """Index of the first row that looks like a header, or ``None``."""

    for idx in range(min(len(rows), HEADER_SCAN_ROWS)):
        cells = [_cell_text(c).strip().lower() for c in (rows[idx] or [])]
        has_name = any(tok in cell for cell in cells for tok in NAME_TOKENS)
        if not has_name:
            continue
        has_category = any(tok in cell for cell in cells for tok in CATEGORY_TOKENS)
        has_brand = any(tok in cell for cell in cells for tok in BRAND_TOKENS)
        if has_category or has_brand:
            return idx
    return None


def map_columns(header: Sequence[Any]) -> Dict[str, int]:
    """Bind each product field to the first header cell matching a synonym."""

    headers = [_cell_text(h).strip().lower() for h in header]
    mapping: Dict[str, int] = {}
    for field_name, synonyms in FIELD_SYNONYMS.items():
        mapping[field_name] = next((i for i, h in enumerate(headers) if h in synonyms), -1)
    for field_name, synonyms in FALLBACK_SYNONYMS.items():
        if mapping[field_name] == -1:
            mapping[field_name] = next((i for i, h in enumerate(headers) if h in synonyms), -1)
    return mapping


def parse_price(raw: str) -> float:
    """Leading number of ``raw`` once everything but digits and dots is dropped.

    ``"12.50 L.L."`` reads as 12.5, ``"1.2.3"`` as 1.2.
    """

    cleaned = _PRICE_STRIP_RE.sub("", raw or "")
    match = _PRICE_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    try:
        price = float(match.group(0))
    except ValueError:
        return 0.0
    if math.isnan(price) or math.isinf(price):
        return 0.0
    return price


def drive_thumbnail_url(url: str) -> Optional[str]:
    if not url:
        return None
    match = _DRIVE_RE.search(url)
    if not match:
        return None
    return f"https://drive.google.com/thumbnail?id={match.group(1)}&sz=w1000"


def resolve_image_url(raw: str, name: str) -> str:
    img = (raw or "").strip()
    if not img or img.lower() in ("undefined", "null"):
        img = f"/images/{name}.jpg"
    elif not img.startswith(("http", "data:", "/images/")):
        img = f"/images/{img}" if "." in img else f"/images/{img}.jpg"
    return drive_thumbnail_url(img) or img


def normalize_stock_status(raw: str) -> str:
    value = (raw or "").strip().lower()
    if any(marker in value for marker in STOCK_IN_MARKERS):
        return STOCK_IN
    if value in STOCK_OUT_VALUES:
        return STOCK_OUT
    return STOCK_IN


def make_product_id(name: str, row_index: int) -> str:
    return f"{_ID_RE.sub('-', name.upper())}-{row_index}"


def _row_to_product(values: Sequence[Any], columns: Dict[str, int], row_index: int) -> Optional[Product]:
    if not values:
        return None

    def get(field_name: str) -> str:
        idx = columns.get(field_name, -1)
        if idx is None or idx < 0 or idx >= len(values) or values[idx] is None:
            return ""
        return str(values[idx]).strip()

    name = get("name")
    if not name:
        return None

    description = "\n".join(part for part in (get("desc"), get("notes")) if part)
    return Product(
        id=make_product_id(name, row_index),
        name=name,
        name_ar=get("name_ar"),
        description=description,
        description_ar=get("desc_ar"),
        category=get("category") or DEFAULT_CATEGORY,
        category_ar=get("category_ar"),
        sub_category=get("sub_category") or DEFAULT_SUB_CATEGORY,
        sub_category_ar=get("sub_category_ar"),
        brand=get("brand") or DEFAULT_BRAND,
        weight=get("weight"),
        packaging=get("packaging"),
        unit_per_pack=get("unit_per_pack"),
        stock_status=normalize_stock_status(get("stock")),
        default_price=parse_price(get("price")),
        image_url=resolve_image_url(get("image"), name),
        is_special_offer=False,
    )


def extract_products(rows: Sequence[Sequence[Any]]) -> ImportResult:
    """Run header detection and row coercion without raising on empty output."""

    if not rows or len(rows) < 2:
        return ImportResult()

    header_row = find_header_row(rows)
    if header_row is None:
        columns = dict(TEMPLATE_COLUMNS)
        first_data_row = 1
    else:
        columns = map_columns(rows[header_row] or [])
        first_data_row = header_row + 1

    products: List[Product] = []
    for row_index, values in enumerate(rows[first_data_row:]):
        product = _row_to_product(values, columns, row_index)
        if product is not None:
            products.append(product)
    return ImportResult(products=products, header_row=header_row)


def import_catalog(rows: Sequence[Sequence[Any]]) -> ImportResult:
    """Normalize ``rows`` into products, failing when none survive."""

    result = extract_products(rows)
    if result.count == 0:
        raise CatalogImportError()
    return result
