"""Order status lifecycle tests."""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.models.menu import Menu
from app.schemas.order import OrderCreate, OrderItemPayload
from app.schemas.payment import PaymentCreate
from app.services.errors import InvalidTransition, OrderNotCancellable, StaffRequired
from app.services.events import EventDispatcher, OrderStatusChanged
from app.services.order_service import OrderService
from app.services.order_status import ALLOWED_TRANSITIONS, can_transition
from app.services.security_guards import Actor

STAFF = Actor(actor_id=1, is_staff=True)
CUSTOMER = Actor(actor_id=42)


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _service_with_order(tmp_path: Path, name: str, dispatcher: EventDispatcher | None = None):
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    with testing_session_local() as db:
        nasi = Menu(name="Nasi Goreng", price=Decimal("25000.00"), is_available=True)
        teh = Menu(name="Es Teh", price=Decimal("5000.00"), is_available=True)
        db.add_all([nasi, teh])
        db.commit()
        items = [OrderItemPayload(menu_id=nasi.id, quantity=2), OrderItemPayload(menu_id=teh.id, quantity=1)]

    service = OrderService(session_factory=testing_session_local, event_dispatcher=dispatcher or EventDispatcher())
    order = service.create_order(OrderCreate(items=items))
    return service, order


def test_transition_table_matches_kitchen_flow() -> None:
    assert can_transition("pending", "confirmed")
    assert can_transition("confirmed", "preparing")
    assert can_transition("preparing", "ready")
    assert can_transition("ready", "completed")
    assert can_transition("pending", "cancelled")
    assert can_transition("confirmed", "cancelled")
    assert not can_transition("preparing", "cancelled")
    assert not can_transition("ready", "pending")
    assert not can_transition("pending", "preparing")
    assert ALLOWED_TRANSITIONS["completed"] == set()
    assert ALLOWED_TRANSITIONS["cancelled"] == set()


def test_staff_can_progress_order_to_completed(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_progress.db")

    for target in ("confirmed", "preparing", "ready", "completed"):
        updated = service.update_status(order.id, target, STAFF)
        assert updated.status == target
        assert updated.status_updated_at is not None

    assert service.get_order(order.id).status == "completed"


def test_invalid_transition_leaves_status_unchanged(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_invalid_transition.db")
    for target in ("confirmed", "preparing", "ready"):
        service.update_status(order.id, target, STAFF)

    with pytest.raises(InvalidTransition) as exc_info:
        service.update_status(order.id, "pending", STAFF)

    assert exc_info.value.current == "ready"
    assert exc_info.value.target == "pending"
    assert service.get_order(order.id).status == "ready"


def test_terminal_statuses_reject_every_transition(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_terminal.db")
    service.cancel_order(order.id, STAFF)

    with pytest.raises(InvalidTransition):
        service.update_status(order.id, "confirmed", STAFF)
    with pytest.raises(OrderNotCancellable):
        service.cancel_order(order.id, STAFF)


def test_status_change_requires_staff(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_status_staff.db")

    with pytest.raises(StaffRequired):
        service.update_status(order.id, "confirmed", CUSTOMER)
    with pytest.raises(StaffRequired):
        service.cancel_order(order.id, CUSTOMER)

    assert service.get_order(order.id).status == "pending"


def test_cancel_is_refused_once_preparation_started(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_cancel_preparing.db")
    service.update_status(order.id, "confirmed", STAFF)
    service.update_status(order.id, "preparing", STAFF)

    with pytest.raises(OrderNotCancellable):
        service.cancel_order(order.id, STAFF)

    assert service.get_order(order.id).status == "preparing"


def test_cancelling_confirmed_order_refunds_completed_payment(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_cancel_refund.db")
    service.update_status(order.id, "confirmed", STAFF)
    payment = service.process_payment(order.id, PaymentCreate(amount=Decimal("20000"), method="cash"), STAFF)
    assert payment.status == "completed"

    cancelled = service.cancel_order(order.id, STAFF)

    assert cancelled.status == "cancelled"
    assert cancelled.payment_status == "refunded"
    assert cancelled.amount_paid == Decimal("0.00")
    assert [p.status for p in cancelled.payments] == ["refunded"]


def test_cancelling_fails_pending_digital_payments(tmp_path: Path) -> None:
    service, order = _service_with_order(tmp_path, "test_cancel_pending.db")
    service.process_payment(
        order.id,
        PaymentCreate(amount=Decimal("55000"), method="qris", transaction_id="QR-100"),
        STAFF,
    )

    cancelled = service.cancel_order(order.id, STAFF)

    assert [p.status for p in cancelled.payments] == ["failed"]
    assert cancelled.payment_status == "pending"


def test_status_changes_publish_previous_status(tmp_path: Path) -> None:
    dispatcher = EventDispatcher()
    received: list[OrderStatusChanged] = []
    dispatcher.subscribe(OrderStatusChanged, received.append)
    service, order = _service_with_order(tmp_path, "test_status_events.db", dispatcher)

    service.update_status(order.id, "confirmed", STAFF)
    service.cancel_order(order.id, STAFF)
    with pytest.raises(InvalidTransition):
        service.update_status(order.id, "preparing", STAFF)

    assert [(event.previous_status, event.order.status) for event in received] == [
        ("pending", "confirmed"),
        ("confirmed", "cancelled"),
    ]
