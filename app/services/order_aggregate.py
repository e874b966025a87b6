"""Order aggregate rules: line-item snapshots, totals and numbering.

The order and its line items form one consistency boundary. Nothing here
opens a transaction; callers run these helpers inside the unit of work that
owns the order and must call :func:`recompute_total` after any item change.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.order import Order, OrderItem
from app.schemas.order import OrderItemPayload
from app.services.catalog import MenuCatalog
from app.services.errors import (
    DuplicateLineItem,
    InvalidQuantity,
    MenuUnavailable,
    OrderAboveMaximum,
    OrderBelowMinimum,
    ValidationFailure,
)
from app.utils.money import ZERO, to_money

CUSTOMER_FIELDS: tuple[str, ...] = ("table_number", "customer_name", "customer_phone", "notes")


def compute_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    """Return the line subtotal for a price snapshot and quantity."""
    return to_money(unit_price * quantity)


def recompute_total(order: Order) -> Decimal:
    """Set ``total_amount`` to the sum of the current line subtotals."""
    total: Decimal = sum((to_money(item.subtotal) for item in order.items), ZERO)
    order.total_amount = to_money(total)
    return order.total_amount


def build_line_items(items: Sequence[OrderItemPayload], catalog: MenuCatalog) -> list[OrderItem]:
    """Validate requested items against the catalog and snapshot their prices."""
    if not items:
        raise ValidationFailure("At least one item is required.")

    max_quantity: int = settings.order_max_item_quantity
    seen_menu_ids: set[int] = set()
    lines: list[OrderItem] = []
    for payload in items:
        if payload.menu_id in seen_menu_ids:
            raise DuplicateLineItem(payload.menu_id)
        seen_menu_ids.add(payload.menu_id)

        if not 1 <= payload.quantity <= max_quantity:
            raise InvalidQuantity(payload.menu_id, payload.quantity, max_quantity)

        snapshot = catalog.lookup(payload.menu_id)
        if not snapshot.is_available:
            raise MenuUnavailable(snapshot.menu_id, snapshot.name)

        lines.append(
            OrderItem(
                menu_id=snapshot.menu_id,
                menu_name=snapshot.name,
                quantity=payload.quantity,
                unit_price=snapshot.price,
                subtotal=compute_subtotal(snapshot.price, payload.quantity),
                notes=payload.notes,
            )
        )
    return lines


def replace_items(order: Order, items: Sequence[OrderItemPayload], catalog: MenuCatalog) -> Decimal:
    """Swap every line item for a freshly validated set and recompute the total.

    All validation runs before the current items are touched, so a rejected
    request leaves the aggregate as it was.
    """
    new_lines: list[OrderItem] = build_line_items(items, catalog)
    order.items.clear()
    order.items.extend(new_lines)
    return recompute_total(order)


def enforce_total_limits(order: Order) -> None:
    """Apply the configured minimum and maximum order value."""
    total: Decimal = to_money(order.total_amount)
    if total < settings.order_min_total:
        raise OrderBelowMinimum(total, settings.order_min_total)
    if total > settings.order_max_total:
        raise OrderAboveMaximum(total, settings.order_max_total)


def apply_customer_info(order: Order, values: Mapping[str, Any]) -> None:
    """Copy customer/table metadata present in ``values`` onto the order."""
    for field_name in CUSTOMER_FIELDS:
        if field_name in values:
            setattr(order, field_name, values[field_name])


def format_order_number(order_date: date, order_seq: int) -> str:
    return f"ORD-{order_date:%Y%m%d}-{order_seq:04d}"


def assign_order_number(db: Session, order: Order, order_date: date) -> str:
    """Give the order the next per-day sequence and its human-readable number.

    Two creators racing for the same sequence collide on the unique index;
    the service retries the losing unit of work.
    """
    last_seq: int = db.scalar(
        select(func.coalesce(func.max(Order.order_seq), 0)).where(Order.order_date == order_date)
    ) or 0
    order.order_date = order_date
    order.order_seq = last_seq + 1
    order.order_number = format_order_number(order_date, order.order_seq)
    return order.order_number
