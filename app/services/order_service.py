"""Order service: runs every order and payment operation in one unit of work.

This is the only writer of orders, line items and payments. The lifecycle
and reconciliation engines mutate the aggregate they are handed; this module
opens the transaction, locks the order, commits, and queues the domain
events that the unit of work publishes after commit.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.db import session as db_session
from app.models.order import Order
from app.models.payment import Payment
from app.schemas.order import OrderCreate, OrderItemRead, OrderRead, OrderUpdate
from app.schemas.payment import PaymentCreate, PaymentRead, PaymentUpdate
from app.services import reconciliation
from app.services.catalog import MenuCatalog, SqlMenuCatalog
from app.services.errors import (
    ConcurrentModification,
    DuplicateTransactionId,
    OrderNotFound,
    TotalBelowAmountPaid,
)
from app.services.events import EventDispatcher, OrderCreated, OrderStatusChanged, PaymentProcessed, dispatcher
from app.services.order_aggregate import (
    CUSTOMER_FIELDS,
    apply_customer_info,
    assign_order_number,
    enforce_total_limits,
    replace_items,
)
from app.services.order_status import ensure_cancellable, ensure_editable, transition
from app.services.payment_ledger import amount_paid, recompute_payment_status, remaining_balance
from app.services.security_guards import Actor, ensure_staff
from app.services.unit_of_work import UnitOfWork
from app.utils.money import ZERO, to_money
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")
CatalogFactory = Callable[[Session], MenuCatalog]

ORDER_NUMBER_CONSTRAINTS: tuple[str, ...] = (
    "uq_orders_order_number",
    "uq_orders_order_date_seq",
    "orders.order_number",
    "orders.order_date",
)


def is_retryable_creation_conflict(exc: Exception) -> bool:
    """Stale rows always retry; integrity errors only for a taken order number."""
    if not isinstance(exc, IntegrityError):
        return True
    message: str = str(exc.orig)
    return "unique" in message.lower() and any(name in message for name in ORDER_NUMBER_CONSTRAINTS)


def serialize_payment(payment: Payment) -> PaymentRead:
    return PaymentRead.model_validate(payment)


def serialize_order(order: Order) -> OrderRead:
    """Build a full snapshot of the order, its items and its ledger."""
    return OrderRead(
        id=order.id,
        order_number=order.order_number,
        order_date=order.order_date,
        status=order.status,
        payment_status=order.payment_status,
        total_amount=to_money(order.total_amount),
        amount_paid=amount_paid(order),
        remaining_balance=remaining_balance(order),
        table_number=order.table_number,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        notes=order.notes,
        created_at=order.created_at,
        updated_at=order.updated_at,
        status_updated_at=order.status_updated_at,
        items=[OrderItemRead.model_validate(item) for item in order.items],
        payments=[serialize_payment(payment) for payment in order.payments],
    )


class OrderService:
    """Composition root for order creation, edits, status changes and payments."""

    def __init__(
        self,
        session_factory: sessionmaker | None = None,
        catalog_factory: CatalogFactory = SqlMenuCatalog,
        event_dispatcher: EventDispatcher | None = None,
    ) -> None:
        self._session_factory = session_factory or db_session.SessionLocal
        self._catalog_factory = catalog_factory
        self._dispatcher = event_dispatcher or dispatcher

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._session_factory, self._dispatcher)

    def _execute(
        self,
        operation: Callable[[UnitOfWork], T],
        *,
        retry_on: tuple[type[Exception], ...] = (StaleDataError,),
        retry_if: Callable[[Exception], bool] | None = None,
    ) -> T:
        """Run ``operation`` in a fresh unit of work, retrying lost races.

        A retried attempt re-reads the order, so a payment that lost the race
        is validated against the winner's ledger.
        """
        attempts: int = max(1, settings.order_conflict_retries)
        for attempt in range(1, attempts + 1):
            try:
                with self.unit_of_work() as uow:
                    result = operation(uow)
                    uow.commit()
                    return result
            except retry_on as exc:
                if retry_if is not None and not retry_if(exc):
                    raise
                logger.warning("[ORDERS] concurrent modification, attempt %s/%s: %s", attempt, attempts, exc)
        raise ConcurrentModification(attempts)

    # -- orders -----------------------------------------------------------

    def create_order(self, payload: OrderCreate) -> OrderRead:
        """Create an order from a customer request; public, no staff needed."""

        def _create(uow: UnitOfWork) -> OrderRead:
            db: Session = uow.session
            now = utcnow()
            order = Order(
                status="pending",
                payment_status="pending",
                total_amount=ZERO,
                version=1,
                created_at=now,
                updated_at=now,
            )
            apply_customer_info(order, payload.model_dump(include=set(CUSTOMER_FIELDS)))
            replace_items(order, payload.items, self._catalog_factory(db))
            enforce_total_limits(order)
            assign_order_number(db, order, now.date())
            db.add(order)
            uow.flush()

            snapshot = serialize_order(order)
            uow.collect(OrderCreated(order=snapshot))
            logger.info("[ORDERS] created %s total=%s items=%s", order.order_number, order.total_amount, len(order.items))
            return snapshot

        return self._execute(
            _create,
            retry_on=(StaleDataError, IntegrityError),
            retry_if=is_retryable_creation_conflict,
        )

    def update_order(self, order_id: int, patch: OrderUpdate, actor: Actor) -> OrderRead:
        """Apply customer detail changes and, when given, a new item list."""

        def _update(uow: UnitOfWork) -> OrderRead:
            order = uow.lock_order(order_id)
            ensure_staff(actor, "update orders")
            ensure_editable(order)

            apply_customer_info(order, patch.model_dump(include=set(CUSTOMER_FIELDS), exclude_unset=True))
            if patch.items is not None:
                replace_items(order, patch.items, self._catalog_factory(uow.session))
                enforce_total_limits(order)
                paid: Decimal = amount_paid(order)
                if to_money(order.total_amount) < paid:
                    raise TotalBelowAmountPaid(to_money(order.total_amount), paid)
                recompute_payment_status(order)
            uow.flush()
            return serialize_order(order)

        return self._execute(_update)

    def update_status(self, order_id: int, target: str, actor: Actor) -> OrderRead:
        def _update_status(uow: UnitOfWork) -> OrderRead:
            order = uow.lock_order(order_id)
            previous = transition(order, target, actor)
            uow.flush()

            snapshot = serialize_order(order)
            uow.collect(OrderStatusChanged(order=snapshot, previous_status=previous))
            logger.info("[ORDERS] %s status %s -> %s", order.order_number, previous, target)
            return snapshot

        return self._execute(_update_status)

    def cancel_order(self, order_id: int, actor: Actor) -> OrderRead:
        """Cancel a pending or confirmed order, refunding settled payments."""

        def _cancel(uow: UnitOfWork) -> OrderRead:
            order = uow.lock_order(order_id)
            ensure_staff(actor, "cancel orders")
            ensure_cancellable(order)
            previous = transition(order, "cancelled", actor)
            uow.flush()

            snapshot = serialize_order(order)
            uow.collect(OrderStatusChanged(order=snapshot, previous_status=previous))
            logger.info("[ORDERS] %s cancelled from %s", order.order_number, previous)
            return snapshot

        return self._execute(_cancel)

    def get_order(self, order_id: int) -> OrderRead:
        with self._session_factory() as db:
            order = db.scalars(self._order_query().where(Order.id == order_id)).first()
            if order is None:
                raise OrderNotFound(order_id)
            return serialize_order(order)

    def get_order_by_number(self, order_number: str) -> OrderRead:
        with self._session_factory() as db:
            order = db.scalars(self._order_query().where(Order.order_number == order_number)).first()
            if order is None:
                raise OrderNotFound(order_number)
            return serialize_order(order)

    def list_orders(
        self,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        limit: int = 50,
    ) -> list[OrderRead]:
        """Return newest orders first, optionally filtered."""
        stmt = self._order_query()
        if status is not None:
            stmt = stmt.where(Order.status == status)
        if payment_status is not None:
            stmt = stmt.where(Order.payment_status == payment_status)
        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        with self._session_factory() as db:
            return [serialize_order(order) for order in db.scalars(stmt).all()]

    def remaining_balance(self, order_id: int) -> Decimal:
        return self.get_order(order_id).remaining_balance

    @staticmethod
    def _order_query():
        return select(Order).options(selectinload(Order.items), selectinload(Order.payments))

    # -- payments ---------------------------------------------------------

    def process_payment(self, order_id: int, request: PaymentCreate, actor: Actor) -> PaymentRead:
        """Record a payment; without an amount the full balance is charged.

        Re-sending a digital payment with an already recorded transaction id
        returns the recorded payment instead of charging twice.
        """

        def _process(uow: UnitOfWork) -> PaymentRead:
            order = uow.lock_order(order_id)
            ensure_staff(actor, "process payments")

            replayed = reconciliation.find_replayed_payment(order, request.method, request.transaction_id)
            if replayed is not None:
                if request.amount is not None and to_money(request.amount) != to_money(replayed.amount):
                    raise DuplicateTransactionId(request.transaction_id)
                logger.info("[PAYMENTS] replayed transaction %s on %s", request.transaction_id, order.order_number)
                return serialize_payment(replayed)

            payment = reconciliation.apply_payment(
                order,
                amount=request.amount,
                method=request.method,
                transaction_id=request.transaction_id,
                actor=actor,
                notes=request.notes,
            )
            uow.flush()

            snapshot = serialize_payment(payment)
            if payment.status == "completed":
                uow.collect(PaymentProcessed(payment=snapshot, order=serialize_order(order)))
            return snapshot

        return self._execute(_process)

    def confirm_payment(self, payment_id: int, actor: Actor) -> PaymentRead:
        """Settle a pending digital payment after external confirmation."""

        def _confirm(uow: UnitOfWork) -> PaymentRead:
            order, payment = uow.lock_payment(payment_id)
            reconciliation.confirm_payment(order, payment, actor)
            uow.flush()

            snapshot = serialize_payment(payment)
            uow.collect(PaymentProcessed(payment=snapshot, order=serialize_order(order)))
            return snapshot

        return self._execute(_confirm)

    def fail_payment(self, payment_id: int, actor: Actor) -> PaymentRead:
        def _fail(uow: UnitOfWork) -> PaymentRead:
            order, payment = uow.lock_payment(payment_id)
            reconciliation.fail_payment(order, payment, actor)
            uow.flush()
            return serialize_payment(payment)

        return self._execute(_fail)

    def refund_payment(self, payment_id: int, actor: Actor, notes: str | None = None) -> PaymentRead:
        def _refund(uow: UnitOfWork) -> PaymentRead:
            order, payment = uow.lock_payment(payment_id)
            reconciliation.refund_payment(order, payment, actor, notes=notes)
            uow.flush()
            logger.info("[PAYMENTS] refunded payment %s on %s", payment.id, order.order_number)
            return serialize_payment(payment)

        return self._execute(_refund)

    def update_payment(self, payment_id: int, patch: PaymentUpdate, actor: Actor) -> PaymentRead:
        def _update(uow: UnitOfWork) -> PaymentRead:
            order, payment = uow.lock_payment(payment_id)
            reconciliation.update_payment(order, payment, patch.model_dump(exclude_unset=True), actor)
            uow.flush()
            return serialize_payment(payment)

        return self._execute(_update)

    def list_payments(self, order_id: int) -> list[PaymentRead]:
        return self.get_order(order_id).payments
