from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in progress"
STATUS_DONE = "done"

# forward-only lifecycle
ORDER_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_DONE)

_CENT = Decimal("0.01")


def _money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def compute_subtotal(items: List["OrderItem"]) -> float:
    subtotal = sum((Decimal(str(it.price)) * Decimal(it.qty) for it in items), Decimal("0"))
    return _money(subtotal)


def compute_total(items: List["OrderItem"], discount: float) -> float:
    subtotal = sum((Decimal(str(it.price)) * Decimal(it.qty) for it in items), Decimal("0"))
    factor = Decimal("1") - Decimal(str(discount)) / Decimal("100")
    return _money(subtotal * factor)


def clamp_discount(value: Any) -> float:
    try:
        pct = float(value or 0)
    except (TypeError, ValueError):
        pct = 0.0
    if pct != pct:
        pct = 0.0
    return min(100.0, max(0.0, pct))


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    text = str(value or "").strip()
    if not text:
        raise ValueError("createdAt required")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class OrderItem:
    item_id: str
    item_name: str
    qty: int
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"itemId": self.item_id, "itemName": self.item_name, "qty": self.qty, "price": self.price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        item_id = str(data.get("itemId", ""))
        try:
            qty = int(data.get("qty", 0) or 0)
            price = float(data.get("price", 0) or 0)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ValueError(f"invalid quantity or price for {item_id}") from exc
        if not math.isfinite(price) or price < 0:
            raise ValueError(f"price for {item_id} must be a finite number >= 0")
        return cls(
            item_id=item_id,
            item_name=str(data.get("itemName", "")),
            qty=qty,
            price=price,
        )


@dataclass(frozen=True)
class Order:
    """A submitted order with price snapshots taken at submission time."""

    order_id: str
    store_name: str
    phone_number: str
    address: str
    items: List[OrderItem]
    notes: str
    status: str
    created_at: datetime
    subtotal: float
    discount: float
    total: float
    created_by: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def with_status(self, status: str) -> "Order":
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload.update(
            {
                "orderId": self.order_id,
                "storeName": self.store_name,
                "phoneNumber": self.phone_number,
                "address": self.address,
                "items": [it.to_dict() for it in self.items],
                "notes": self.notes,
                "status": self.status,
                "createdAt": format_timestamp(self.created_at),
                "subtotal": self.subtotal,
                "discount": self.discount,
                "total": self.total,
                "createdBy": self.created_by,
            }
        )
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        known = {
            "orderId", "storeName", "phoneNumber", "address", "items", "notes",
            "status", "createdAt", "subtotal", "discount", "total", "createdBy",
        }
        items = [OrderItem.from_dict(i) for i in data.get("items") or [] if isinstance(i, dict)]
        discount = clamp_discount(data.get("discount"))
        # older snapshots carry only a total
        subtotal: Optional[float] = data.get("subtotal")
        if subtotal is None:
            subtotal = compute_subtotal(items)
        total = data.get("total")
        if total is None:
            total = compute_total(items, discount)
        status = str(data.get("status") or STATUS_PENDING)
        if status not in ORDER_STATUSES:
            status = STATUS_PENDING
        return cls(
            order_id=str(data.get("orderId", "")),
            store_name=str(data.get("storeName", "")),
            phone_number=str(data.get("phoneNumber", "")),
            address=str(data.get("address", "")),
            items=items,
            notes=str(data.get("notes") or ""),
            status=status,
            created_at=parse_timestamp(data.get("createdAt")),
            subtotal=float(subtotal),
            discount=discount,
            total=float(total),
            created_by=str(data.get("createdBy", "")),
            extra={k: v for k, v in data.items() if k not in known},
        )
