"""Payment endpoints for staff settlement of digital payments."""

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_order_service
from app.auth import get_actor
from app.schemas.payment import PaymentRead, PaymentRefund, PaymentUpdate
from app.services.order_service import OrderService
from app.services.security_guards import Actor

router: APIRouter = APIRouter()


@router.patch("/{payment_id}", response_model=PaymentRead)
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> PaymentRead:
    """Correct a pending payment; completed payments must be refunded instead."""
    return service.update_payment(payment_id, payload, actor)


@router.post("/{payment_id}/confirm", response_model=PaymentRead)
def confirm_payment(
    payment_id: int,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> PaymentRead:
    return service.confirm_payment(payment_id, actor)


@router.post("/{payment_id}/fail", response_model=PaymentRead)
def fail_payment(
    payment_id: int,
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> PaymentRead:
    return service.fail_payment(payment_id, actor)


@router.post("/{payment_id}/refund", response_model=PaymentRead)
def refund_payment(
    payment_id: int,
    payload: PaymentRefund | None = Body(default=None),
    service: OrderService = Depends(get_order_service),
    actor: Actor = Depends(get_actor),
) -> PaymentRead:
    notes = payload.notes if payload is not None else None
    return service.refund_payment(payment_id, actor, notes=notes)
