"""Payment reconciliation: validating, applying, settling and refunding payments.

All functions operate on an order that the caller loaded through the unit of
work's per-order lock, with its payments already in memory. The balance check
and the payment insert therefore see the same ledger, and the order version
bump on commit rejects a write that raced with another payment.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.core.config import settings
from app.models.order import Order
from app.models.payment import PAYMENT_METHODS, Payment
from app.services.errors import (
    AmountExceedsBalance,
    InvalidAmount,
    NotRefundable,
    OrderCancelled,
    PaymentAlreadyCompleted,
    PaymentMethodNotEditable,
    PaymentNotEditable,
    TransactionIdNotAllowed,
    TransactionIdRequired,
)
from app.services.payment_ledger import recompute_payment_status, remaining_balance
from app.services.security_guards import Actor, ensure_staff
from app.utils.money import ZERO, to_money
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

DIGITAL_METHODS: frozenset[str] = frozenset(method for method in PAYMENT_METHODS if method != "cash")


def validate_transaction_reference(method: str, transaction_id: str | None) -> None:
    """Digital payments need an external reference; cash must not carry one."""
    if method == "cash":
        if transaction_id:
            raise TransactionIdNotAllowed()
        return
    if not transaction_id:
        raise TransactionIdRequired(method)


def validate_amount(order: Order, amount: Decimal, method: str) -> Decimal:
    """Check a payment amount against the remaining balance and method limits."""
    amount = to_money(amount)
    if amount <= ZERO:
        raise InvalidAmount("Payment amount must be greater than zero.")

    remaining: Decimal = remaining_balance(order)
    if amount > remaining:
        raise AmountExceedsBalance(amount, remaining)

    if method == "cash" and amount > settings.cash_payment_max:
        raise InvalidAmount(f"Maximum cash payment amount is {settings.cash_payment_max}.")
    if method in DIGITAL_METHODS and amount < settings.digital_payment_min:
        raise InvalidAmount(f"Minimum amount for digital payments is {settings.digital_payment_min}.")
    return amount


def ensure_payable(order: Order) -> None:
    if order.status == "cancelled":
        raise OrderCancelled(order.order_number)


def ensure_pending(payment: Payment) -> None:
    """Only pending payments may change; settled history is append-only."""
    if payment.status == "completed":
        raise PaymentAlreadyCompleted(payment.id)
    if payment.status != "pending":
        raise PaymentNotEditable(payment.id, payment.status)


def find_replayed_payment(order: Order, method: str, transaction_id: str | None) -> Payment | None:
    """Return a live payment already recorded for the same external reference."""
    if method == "cash" or not transaction_id:
        return None
    for payment in order.payments:
        if (
            payment.method == method
            and payment.transaction_id == transaction_id
            and payment.status in {"pending", "completed"}
        ):
            return payment
    return None


def settle(payment: Payment, now: datetime) -> None:
    payment.status = "completed"
    payment.processed_at = now
    payment.updated_at = now


def mark_refunded(payment: Payment, now: datetime) -> None:
    payment.status = "refunded"
    payment.updated_at = now


def apply_payment(
    order: Order,
    *,
    amount: Decimal | None,
    method: str,
    transaction_id: str | None,
    actor: Actor,
    notes: str | None = None,
    now: datetime | None = None,
) -> Payment:
    """Record a payment against the order and refresh its payment status.

    Cash settles immediately; digital methods stay pending until confirmed.
    Without an explicit amount the whole remaining balance is charged.
    """
    ensure_staff(actor, "process payments")
    ensure_payable(order)
    validate_transaction_reference(method, transaction_id)

    if amount is None:
        amount = remaining_balance(order)
        if amount <= ZERO:
            raise InvalidAmount(f"Order {order.order_number} has no remaining balance.")
    checked_amount: Decimal = validate_amount(order, amount, method)

    now = now or utcnow()
    payment = Payment(
        amount=checked_amount,
        method=method,
        status="pending",
        transaction_id=transaction_id or None,
        processed_by=actor.actor_id,
        notes=notes,
        created_at=now,
        updated_at=now,
    )
    order.payments.append(payment)
    if method == "cash":
        settle(payment, now)
    recompute_payment_status(order)
    logger.info(
        "[PAYMENTS] %s %s payment of %s on order %s",
        payment.status,
        method,
        checked_amount,
        order.order_number,
    )
    return payment


def confirm_payment(order: Order, payment: Payment, actor: Actor, now: datetime | None = None) -> Payment:
    """Settle a pending digital payment once the provider confirmed it.

    The balance is checked again because pending payments do not reserve it.
    """
    ensure_staff(actor, "confirm payments")
    ensure_pending(payment)
    ensure_payable(order)
    remaining: Decimal = remaining_balance(order)
    if to_money(payment.amount) > remaining:
        raise AmountExceedsBalance(to_money(payment.amount), remaining)

    settle(payment, now or utcnow())
    recompute_payment_status(order)
    return payment


def fail_payment(order: Order, payment: Payment, actor: Actor, now: datetime | None = None) -> Payment:
    ensure_staff(actor, "update payments")
    ensure_pending(payment)
    payment.status = "failed"
    payment.updated_at = now or utcnow()
    recompute_payment_status(order)
    return payment


def refund_payment(
    order: Order,
    payment: Payment,
    actor: Actor,
    notes: str | None = None,
    now: datetime | None = None,
) -> Payment:
    ensure_staff(actor, "refund payments")
    if payment.status != "completed":
        raise NotRefundable(payment.id, payment.status)
    mark_refunded(payment, now or utcnow())
    if notes is not None:
        payment.notes = notes
    recompute_payment_status(order)
    return payment


def update_payment(
    order: Order,
    payment: Payment,
    changes: Mapping[str, Any],
    actor: Actor,
    now: datetime | None = None,
) -> Payment:
    """Edit a pending payment; completed ones are corrected by refund instead.

    Pending payments are digital; cash settles on creation, so switching one
    to cash is refused and a new cash payment is recorded instead.
    """
    ensure_staff(actor, "update payments")
    ensure_pending(payment)

    method: str = changes.get("method") or payment.method
    if method == "cash" and payment.method != "cash":
        raise PaymentMethodNotEditable(payment.id, method)
    transaction_id: str | None = changes["transaction_id"] if "transaction_id" in changes else payment.transaction_id
    validate_transaction_reference(method, transaction_id)

    amount: Decimal = to_money(payment.amount)
    if changes.get("amount") is not None or "method" in changes:
        amount = validate_amount(order, changes.get("amount") or payment.amount, method)

    payment.amount = amount
    payment.method = method
    payment.transaction_id = transaction_id or None
    if "notes" in changes:
        payment.notes = changes["notes"]
    payment.updated_at = now or utcnow()
    recompute_payment_status(order)
    return payment
