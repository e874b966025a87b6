"""Schema exports."""

from app.schemas.order import (
    OrderCreate,
    OrderItemPayload,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
    OrderUpdate,
)
from app.schemas.payment import PaymentCreate, PaymentRead, PaymentRefund, PaymentUpdate

__all__ = [
    "OrderCreate",
    "OrderItemPayload",
    "OrderItemRead",
    "OrderRead",
    "OrderStatusUpdate",
    "OrderUpdate",
    "PaymentCreate",
    "PaymentRead",
    "PaymentRefund",
    "PaymentUpdate",
]
