"""Unit of work: one database transaction per public order operation.

The unit of work is the per-order serialization point. ``lock_order`` reads
the order row ``FOR UPDATE`` where the dialect supports it, and ``commit``
bumps the version of every locked order. The version column guards the
UPDATE, so a transaction that computed a balance from a stale ledger fails
with ``StaleDataError`` instead of committing.
"""

from __future__ import annotations

import logging
from types import TracebackType

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from app.models.order import Order
from app.models.payment import Payment
from app.services.errors import OrderNotFound, PaymentNotFound
from app.services.events import DomainEvent, EventDispatcher
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Context manager wrapping a session; rolls back unless committed."""

    def __init__(self, session_factory: sessionmaker, dispatcher: EventDispatcher) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._events: list[DomainEvent] = []
        self._locked: dict[int, Order] = {}
        self.session: Session | None = None

    def __enter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if self.session.in_transaction():
                self.session.rollback()
        finally:
            self.session.close()
            self._events.clear()
            self._locked.clear()

    def lock_order(self, order_id: int) -> Order:
        """Load the order with its items and payments for writing."""
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items), selectinload(Order.payments))
            .with_for_update(of=Order)
            .execution_options(populate_existing=True)
        )
        order: Order | None = self.session.scalars(stmt).first()
        if order is None:
            raise OrderNotFound(order_id)
        self._locked[order.id] = order
        return order

    def lock_payment(self, payment_id: int) -> tuple[Order, Payment]:
        """Lock the order that owns ``payment_id`` and return both."""
        order_id: int | None = self.session.scalar(select(Payment.order_id).where(Payment.id == payment_id))
        if order_id is None:
            raise PaymentNotFound(payment_id)
        order = self.lock_order(order_id)
        for payment in order.payments:
            if payment.id == payment_id:
                return order, payment
        raise PaymentNotFound(payment_id)

    def collect(self, event: DomainEvent) -> None:
        self._events.append(event)

    def flush(self) -> None:
        """Stamp locked orders with a new version and write pending changes."""
        now = utcnow()
        for order in self._locked.values():
            order.version += 1
            order.updated_at = now
        self._locked.clear()
        self.session.flush()

    def commit(self) -> None:
        """Commit the transaction, then publish the collected events."""
        self.flush()
        self.session.commit()

        events, self._events = self._events, []
        for event in events:
            self._dispatcher.publish(event)
