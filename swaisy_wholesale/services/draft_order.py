"""Draft order (cart) state and its transitions.

Each event is applied with ``apply(draft, event)`` which returns a new
draft; drafts are never mutated in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple, Union

from ..common.models.order import OrderItem, clamp_discount, compute_subtotal, compute_total
from ..common.models.product import Product
from ..common.models.user import ROLE_SHOP, User

PHONE_RE = re.compile(r"^\d{8}$")
EDITABLE_FIELDS = ("store_name", "phone_number", "address", "notes")


@dataclass(frozen=True)
class DraftOrder:
    store_name: str = ""
    phone_number: str = ""
    address: str = ""
    items: Tuple[OrderItem, ...] = field(default_factory=tuple)
    notes: str = ""
    discount: float = 0.0

    @property
    def subtotal(self) -> float:
        return compute_subtotal(list(self.items))

    @property
    def total(self) -> float:
        return compute_total(list(self.items), self.discount)

    @property
    def item_count(self) -> int:
        return sum(it.qty for it in self.items)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DraftOrder":
        items = []
        for raw in data.get("items") or []:
            if not isinstance(raw, dict):
                raise ValueError("order items must be objects")
            item = OrderItem.from_dict(raw)
            if item.qty <= 0:
                raise ValueError(f"quantity for {item.item_id} must be > 0")
            items.append(item)
        return cls(
            store_name=str(data.get("storeName") or ""),
            phone_number=str(data.get("phoneNumber") or ""),
            address=str(data.get("address") or ""),
            items=tuple(items),
            notes=str(data.get("notes") or ""),
            discount=clamp_discount(data.get("discount")),
        )


@dataclass(frozen=True)
class AddItem:
    product: Product
    qty: int = 1


@dataclass(frozen=True)
class SetQuantity:
    item_id: str
    qty: int


@dataclass(frozen=True)
class SetField:
    name: str
    value: str


@dataclass(frozen=True)
class SetDiscount:
    percent: float


@dataclass(frozen=True)
class Reset:
    pass


DraftEvent = Union[AddItem, SetQuantity, SetField, SetDiscount, Reset]


def apply(draft: DraftOrder, event: DraftEvent) -> DraftOrder:
    if isinstance(event, AddItem):
        if event.qty <= 0:
            raise ValueError("quantity must be > 0")
        pid = event.product.id
        if any(it.item_id == pid for it in draft.items):
            items = tuple(replace(it, qty=it.qty + event.qty) if it.item_id == pid else it for it in draft.items)
        else:
            line = OrderItem(pid, event.product.name, event.qty, event.product.default_price)
            items = draft.items + (line,)
        return replace(draft, items=items)
    if isinstance(event, SetQuantity):
        if event.qty <= 0:
            items = tuple(it for it in draft.items if it.item_id != event.item_id)
        else:
            items = tuple(replace(it, qty=event.qty) if it.item_id == event.item_id else it for it in draft.items)
        return replace(draft, items=items)
    if isinstance(event, SetField):
        if event.name not in EDITABLE_FIELDS:
            raise ValueError(f"field not editable: {event.name}")
        return replace(draft, **{event.name: event.value})
    if isinstance(event, SetDiscount):
        return replace(draft, discount=clamp_discount(event.percent))
    if isinstance(event, Reset):
        return DraftOrder()
    raise TypeError(f"unsupported draft event: {type(event).__name__}")


def for_user(draft: DraftOrder, user: Optional[User]) -> DraftOrder:
    """Shop accounts order under the store details on their profile, undiscounted."""

    if user is None or user.role != ROLE_SHOP:
        return draft
    return replace(
        draft,
        store_name=user.store_name or "",
        phone_number=user.phone_number or "",
        address=user.address or "",
        discount=0.0,
    )


def validate_for_submission(draft: DraftOrder) -> None:
    if not draft.store_name.strip() or not draft.phone_number.strip() or not draft.address.strip():
        raise ValueError("store name, phone number and address are required")
    if not PHONE_RE.match(draft.phone_number.strip()):
        raise ValueError("phone number must be exactly 8 digits")
    if not draft.items:
        raise ValueError("order has no items")
