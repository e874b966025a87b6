"""Domain events and the in-process dispatcher that publishes them.

Events are plain data carrying full snapshots of the affected order. They
are handed to the dispatcher only after the unit of work commits; transport
adapters (websocket broadcast, queues) subscribe to the dispatcher.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.schemas.order import OrderRead
from app.schemas.payment import PaymentRead

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    name = "domain.event"


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    order: OrderRead

    name = "order.created"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    order: OrderRead
    previous_status: str

    name = "order.status.updated"


@dataclass(frozen=True)
class PaymentProcessed(DomainEvent):
    payment: PaymentRead
    order: OrderRead

    name = "payment.processed"


EventHandler = Callable[[Any], None]


class EventDispatcher:
    """Subscribe handlers by event type; publishing never raises."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = {}

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in self._handlers.get(type(event), []):
            try:
                handler(event)
            except Exception:
                logger.exception("[EVENTS] handler %r failed for %s", handler, event.name)


def log_event(event: DomainEvent) -> None:
    """Default subscriber that records every published event."""
    order: OrderRead = event.order
    logger.info("[EVENTS] %s order=%s status=%s payment_status=%s", event.name, order.order_number, order.status, order.payment_status)


dispatcher: EventDispatcher = EventDispatcher()
for _event_type in (OrderCreated, OrderStatusChanged, PaymentProcessed):
    dispatcher.subscribe(_event_type, log_event)
