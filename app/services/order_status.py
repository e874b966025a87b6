"""Order status transition rules and their side effects."""

from __future__ import annotations

import logging
from datetime import datetime

from app.models.order import Order
from app.services.errors import InvalidTransition, OrderNotCancellable, OrderNotEditable
from app.services.payment_ledger import recompute_payment_status
from app.services.reconciliation import mark_refunded
from app.services.security_guards import Actor, ensure_staff
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"preparing", "cancelled"},
    "preparing": {"ready"},
    "ready": {"completed"},
    "completed": set(),
    "cancelled": set(),
}
EDITABLE_STATUSES: frozenset[str] = frozenset({"pending", "confirmed"})
CANCELLABLE_STATUSES: frozenset[str] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if "cancelled" in targets
)


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def ensure_editable(order: Order) -> None:
    """Items and customer details may change only before preparation starts."""
    if order.status not in EDITABLE_STATUSES:
        raise OrderNotEditable(order.status)


def ensure_cancellable(order: Order) -> None:
    if order.status not in CANCELLABLE_STATUSES:
        raise OrderNotCancellable(order.status)


def set_status(order: Order, new_status: str, now: datetime) -> None:
    """Set status and update corresponding timestamps."""
    order.status = new_status
    order.status_updated_at = now

    if new_status == "confirmed":
        order.confirmed_at = now
    elif new_status == "completed":
        order.completed_at = now
    elif new_status == "cancelled":
        order.cancelled_at = now


def void_payments(order: Order, now: datetime) -> int:
    """Refund settled payments and fail pending ones on a cancelled order.

    Returns the number of refunds recorded.
    """
    refunded: int = 0
    for payment in order.payments:
        if payment.status == "completed":
            mark_refunded(payment, now)
            refunded += 1
        elif payment.status == "pending":
            payment.status = "failed"
            payment.updated_at = now
    return refunded


def transition(order: Order, target: str, actor: Actor, now: datetime | None = None) -> str:
    """Move the order to ``target`` and return the previous status."""
    ensure_staff(actor, "change order status")
    previous: str = order.status
    if not can_transition(previous, target):
        raise InvalidTransition(previous, target)

    now = now or utcnow()
    set_status(order, target, now)
    if target == "cancelled":
        refunded = void_payments(order, now)
        if refunded:
            logger.info("[ORDERS] refunded %s payment(s) on cancelled order %s", refunded, order.order_number)
    recompute_payment_status(order)
    return previous
