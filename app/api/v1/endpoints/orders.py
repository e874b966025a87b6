"""Order endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_order_service
from app.auth import get_actor
from app.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate, OrderStatusValue, OrderUpdate
from app.schemas.payment import PaymentCreate, PaymentRead
from app.services.order_service import OrderService
from app.services.security_guards import Actor, ensure_staff

router: APIRouter = APIRouter()

PaymentStatusValue = Literal["pending", "partial", "paid", "failed", "refunded"]


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> OrderRead:
    """Place a new order from the customer menu."""
    return service.create_order(payload)


@router.get("", response_model=list[OrderRead])
def list_orders(
    status_value: OrderStatusValue | None = Query(default=None, alias="status"),
    payment_status: PaymentStatusValue | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> list[OrderRead]:
    """List recent orders for the staff dashboard."""
    ensure_staff(actor, "list orders")
    return service.list_orders(status=status_value, payment_status=payment_status, limit=limit)


@router.get("/number/{order_number}", response_model=OrderRead)
def get_order_by_number(order_number: str, service: OrderService = Depends(get_order_service)) -> OrderRead:
    """Look up an order by the number printed on the customer's receipt."""
    return service.get_order_by_number(order_number)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, service: OrderService = Depends(get_order_service)) -> OrderRead:
    return service.get_order(order_id)


@router.patch("/{order_id}", response_model=OrderRead)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> OrderRead:
    """Edit customer details or replace the items of an open order."""
    return service.update_order(order_id, payload, actor)


@router.post("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> OrderRead:
    return service.update_status(order_id, payload.status, actor)


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> OrderRead:
    """Cancel the order; settled payments are refunded."""
    return service.cancel_order(order_id, actor)


@router.get("/{order_id}/payments", response_model=list[PaymentRead])
def list_order_payments(order_id: int, service: OrderService = Depends(get_order_service)) -> list[PaymentRead]:
    return service.list_payments(order_id)


@router.post("/{order_id}/payments", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def process_order_payment(
    order_id: int,
    payload: PaymentCreate,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> PaymentRead:
    """Record a payment; omit ``amount`` to settle the whole remaining balance."""
    return service.process_payment(order_id, payload, actor)
