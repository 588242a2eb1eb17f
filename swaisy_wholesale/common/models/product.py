from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict

STOCK_IN = "in"
STOCK_OUT = "out"

# attribute name -> persisted/wire key
_WIRE_KEYS = {
    "id": "id",
    "name": "name",
    "name_ar": "nameAr",
    "description": "description",
    "description_ar": "descriptionAr",
    "category": "category",
    "category_ar": "categoryAr",
    "sub_category": "subCategory",
    "sub_category_ar": "subCategoryAr",
    "brand": "brand",
    "weight": "weight",
    "packaging": "packaging",
    "unit_per_pack": "unitPerPack",
    "stock_status": "stockStatus",
    "default_price": "defaultPrice",
    "image_url": "imageUrl",
    "is_special_offer": "isSpecialOffer",
}

_TRUTHY = {"1", "true", "yes", "on"}


def _as_flag(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY
    return bool(raw)


@dataclass(frozen=True)
class Product:
    """A catalog entry as produced by the importer or a manual edit."""

    id: str
    name: str
    name_ar: str = ""
    description: str = ""
    description_ar: str = ""
    category: str = "Uncategorized"
    category_ar: str = ""
    sub_category: str = "General"
    sub_category_ar: str = ""
    brand: str = "Generic"
    weight: str = ""
    packaging: str = ""
    unit_per_pack: str = ""
    stock_status: str = STOCK_IN
    default_price: float = 0.0
    image_url: str = ""
    is_special_offer: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, wire in _WIRE_KEYS.items()}

    def with_changes(self, **changes: Any) -> "Product":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """Build a product from a wire dict, coercing loosely typed values."""

        if not isinstance(data, dict):
            raise ValueError("product payload must be an object")
        product_id = str(data.get("id") or "").strip()
        name = str(data.get("name") or "").strip()
        if not product_id:
            raise ValueError("product id required")
        if not name:
            raise ValueError("product name required")

        values: Dict[str, Any] = {}
        for f in fields(cls):
            wire = _WIRE_KEYS[f.name]
            if wire not in data or data[wire] is None:
                continue
            raw = data[wire]
            if f.name == "default_price":
                try:
                    price = float(raw)
                except (TypeError, ValueError) as exc:
                    raise ValueError("defaultPrice must be a number") from exc
                if price != price or price < 0:
                    raise ValueError("defaultPrice must be >= 0")
                values[f.name] = price
            elif f.name == "is_special_offer":
                values[f.name] = _as_flag(raw)
            elif f.name == "stock_status":
                status = str(raw).strip().lower()
                if status not in (STOCK_IN, STOCK_OUT):
                    raise ValueError("stockStatus must be 'in' or 'out'")
                values[f.name] = status
            else:
                values[f.name] = str(raw)
        values["id"] = product_id
        values["name"] = name
        return cls(**values)
