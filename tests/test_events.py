"""Domain event publication tests."""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.models.menu import Menu
from app.models.order import Order
from app.schemas.order import OrderCreate, OrderItemPayload
from app.schemas.payment import PaymentCreate
from app.services.errors import MenuUnavailable
from app.services.events import EventDispatcher, OrderCreated, OrderStatusChanged, PaymentProcessed
from app.services.order_service import OrderService
from app.services.security_guards import Actor

STAFF = Actor(actor_id=1, is_staff=True)


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _setup(tmp_path: Path, name: str, dispatcher: EventDispatcher):
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    with testing_session_local() as db:
        nasi = Menu(name="Nasi Goreng", price=Decimal("25000.00"), is_available=True)
        sold_out = Menu(name="Rendang", price=Decimal("40000.00"), is_available=False)
        db.add_all([nasi, sold_out])
        db.commit()
        menu_ids = {"nasi": nasi.id, "sold_out": sold_out.id}

    service = OrderService(session_factory=testing_session_local, event_dispatcher=dispatcher)
    return service, testing_session_local, menu_ids


def test_order_created_is_published_after_commit(tmp_path: Path) -> None:
    dispatcher = EventDispatcher()
    service, session_factory, menu_ids = _setup(tmp_path, "test_event_after_commit.db", dispatcher)
    persisted_at_publish: list[bool] = []

    def _check_persisted(event: OrderCreated) -> None:
        with session_factory() as db:
            persisted_at_publish.append(db.scalar(select(Order.id).where(Order.id == event.order.id)) is not None)

    dispatcher.subscribe(OrderCreated, _check_persisted)

    order = service.create_order(OrderCreate(items=[OrderItemPayload(menu_id=menu_ids["nasi"], quantity=1)]))

    assert persisted_at_publish == [True]
    assert order.order_number.startswith("ORD-")


def test_failed_operation_publishes_nothing(tmp_path: Path) -> None:
    dispatcher = EventDispatcher()
    received: list[object] = []
    for event_type in (OrderCreated, OrderStatusChanged, PaymentProcessed):
        dispatcher.subscribe(event_type, received.append)
    service, _, menu_ids = _setup(tmp_path, "test_event_rollback.db", dispatcher)

    with pytest.raises(MenuUnavailable):
        service.create_order(OrderCreate(items=[OrderItemPayload(menu_id=menu_ids["sold_out"], quantity=1)]))

    assert received == []


def test_failing_subscriber_does_not_undo_the_operation(tmp_path: Path, caplog) -> None:
    dispatcher = EventDispatcher()
    received: list[PaymentProcessed] = []

    def _broken_broadcast(event: PaymentProcessed) -> None:
        raise RuntimeError("websocket closed")

    dispatcher.subscribe(PaymentProcessed, _broken_broadcast)
    dispatcher.subscribe(PaymentProcessed, received.append)
    service, _, menu_ids = _setup(tmp_path, "test_event_handler_failure.db", dispatcher)
    order = service.create_order(OrderCreate(items=[OrderItemPayload(menu_id=menu_ids["nasi"], quantity=1)]))

    with caplog.at_level("ERROR"):
        payment = service.process_payment(order.id, PaymentCreate(method="cash"), STAFF)

    assert payment.status == "completed"
    assert service.get_order(order.id).payment_status == "paid"
    assert len(received) == 1
    assert "[EVENTS]" in caplog.text
