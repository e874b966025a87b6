"""Payment ledger queries: amount paid, remaining balance, payment status."""

from __future__ import annotations

from decimal import Decimal

from app.models.order import Order
from app.utils.money import ZERO, to_money


def amount_paid(order: Order) -> Decimal:
    """Sum of settled (completed) payments on the order."""
    return to_money(sum((to_money(p.amount) for p in order.payments if p.status == "completed"), ZERO))


def remaining_balance(order: Order) -> Decimal:
    """Amount still owed; the only place the balance is computed."""
    return max(ZERO, to_money(order.total_amount) - amount_paid(order))


def derive_payment_status(order: Order) -> str:
    """Return the payment status implied by the current ledger."""
    paid: Decimal = amount_paid(order)
    if paid > ZERO:
        return "paid" if remaining_balance(order) == ZERO else "partial"

    if order.status == "cancelled" and any(payment.status == "refunded" for payment in order.payments):
        return "refunded"
    return "pending"


def recompute_payment_status(order: Order) -> str:
    order.payment_status = derive_payment_status(order)
    return order.payment_status
