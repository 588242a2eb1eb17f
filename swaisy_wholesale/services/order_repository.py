"""Submitted orders: creation, role-filtered listing and status tracking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from ..common.errors import NotFoundError
from ..common.models.order import (
    ORDER_STATUSES,
    STATUS_PENDING,
    Order,
    OrderItem,
    compute_subtotal,
    compute_total,
)
from ..common.models.user import ROLE_ADMIN, ROLE_EDITOR, User
from ..common.services.logging import log_event
from .blob_store import ORDERS_KEY, persist_snapshot
from .draft_order import DraftOrder, validate_for_submission


class OrderRepository:
    """Owns the order list snapshot; newest orders first."""

    def __init__(self, blob_store: Any, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._blob_store = blob_store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._orders: List[Order] = self._load()

    def create_order(self, draft: DraftOrder, *, created_by: str) -> Order:
        """Validate ``draft`` and store it as a pending order."""

        validate_for_submission(draft)
        items = [OrderItem(it.item_id, it.item_name, it.qty, it.price) for it in draft.items]
        created_at = self._clock()
        order = Order(
            order_id=self._next_id(created_at),
            store_name=draft.store_name.strip(),
            phone_number=draft.phone_number.strip(),
            address=draft.address.strip(),
            items=items,
            notes=draft.notes,
            status=STATUS_PENDING,
            created_at=created_at,
            subtotal=compute_subtotal(items),
            discount=draft.discount,
            total=compute_total(items, draft.discount),
            created_by=created_by,
        )
        self._orders = [order] + self._orders
        self._save()
        log_event(
            "info",
            "order.created",
            order_id=order.order_id,
            items=len(items),
            subtotal=order.subtotal,
            total=order.total,
            created_by=created_by,
        )
        return order

    def list_orders(self, user: User) -> List[Order]:
        """Orders visible to ``user``: all for admins, their own otherwise."""

        if user.role == ROLE_EDITOR:
            return []
        if user.role == ROLE_ADMIN:
            visible = list(self._orders)
        else:
            visible = [o for o in self._orders if o.created_by == user.username]
        return sorted(visible, key=lambda o: o.created_at, reverse=True)

    def get_order(self, order_id: str) -> Order:
        for order in self._orders:
            if order.order_id == order_id:
                return order
        raise NotFoundError("order", order_id)

    def update_status(self, order_id: str, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise ValueError(f"unknown order status: {status}")
        current = self.get_order(order_id)
        if status == current.status:
            return current
        if ORDER_STATUSES.index(status) < ORDER_STATUSES.index(current.status):
            raise ValueError(f"order {order_id} cannot move from '{current.status}' back to '{status}'")
        updated = current.with_status(status)
        self._orders = [updated if o.order_id == order_id else o for o in self._orders]
        self._save()
        log_event("info", "order.status_changed", order_id=order_id, old=current.status, new=status)
        return updated

    def delete_order(self, order_id: str) -> None:
        remaining = [o for o in self._orders if o.order_id != order_id]
        if len(remaining) == len(self._orders):
            raise NotFoundError("order", order_id)
        self._orders = remaining
        self._save()
        log_event("info", "order.deleted", order_id=order_id)

    def _next_id(self, created_at: datetime) -> str:
        stamp = int(created_at.timestamp() * 1000)
        existing = {o.order_id for o in self._orders}
        while f"SW-{stamp}" in existing:
            stamp += 1
        return f"SW-{stamp}"

    def _load(self) -> List[Order]:
        raw = self._blob_store.read(ORDERS_KEY, [])
        if not isinstance(raw, list):
            return []
        orders: List[Order] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                orders.append(Order.from_dict(entry))
            except (TypeError, ValueError) as exc:
                log_event("warning", "storage.record_skipped", key=ORDERS_KEY, error=str(exc))
        return orders

    def _save(self) -> None:
        persist_snapshot(self._blob_store, ORDERS_KEY, [o.to_dict() for o in self._orders])
