"""Order API schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.payment import PaymentRead

PHONE_PATTERN: str = r"^\+?[0-9\-\(\)\s]+$"

OrderStatusValue = Literal["pending", "confirmed", "preparing", "ready", "completed", "cancelled"]


class OrderItemPayload(BaseModel):
    """Single order item payload; quantity bounds are enforced by the order service."""

    menu_id: int
    quantity: int = 1
    notes: str | None = Field(default=None, max_length=255)


class OrderCreate(BaseModel):
    """Customer order submitted from the table."""

    table_number: str | None = Field(default=None, max_length=10)
    customer_name: str | None = Field(default=None, max_length=255)
    customer_phone: str | None = Field(default=None, max_length=20, pattern=PHONE_PATTERN)
    notes: str | None = Field(default=None, max_length=500)
    items: list[OrderItemPayload] = Field(min_length=1)


class OrderUpdate(BaseModel):
    """Partial order edit; only fields present in the request are applied."""

    table_number: str | None = Field(default=None, max_length=10)
    customer_name: str | None = Field(default=None, max_length=255)
    customer_phone: str | None = Field(default=None, max_length=20, pattern=PHONE_PATTERN)
    notes: str | None = Field(default=None, max_length=500)
    items: list[OrderItemPayload] | None = Field(default=None, min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatusValue


class OrderItemRead(BaseModel):
    """Serialized order line item."""

    id: int
    menu_id: int | None
    menu_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    notes: str | None

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    """Full order snapshot including ledger figures."""

    id: int
    order_number: str
    order_date: date
    status: str
    payment_status: str
    total_amount: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    table_number: str | None
    customer_name: str | None
    customer_phone: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
    status_updated_at: datetime | None
    items: list[OrderItemRead]
    payments: list[PaymentRead]
