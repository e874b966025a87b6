"""Payment API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PaymentMethodValue = Literal["cash", "qris", "bank_transfer", "e_wallet"]


class PaymentCreate(BaseModel):
    """Payment request; omit ``amount`` to settle the full remaining balance."""

    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    method: PaymentMethodValue
    transaction_id: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=500)


class PaymentUpdate(BaseModel):
    """Edit of a pending payment."""

    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    method: PaymentMethodValue | None = None
    transaction_id: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=500)


class PaymentRefund(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class PaymentRead(BaseModel):
    """Serialized payment."""

    id: int
    order_id: int
    amount: Decimal
    method: str
    status: str
    transaction_id: str | None
    processed_by: int | None
    processed_at: datetime | None
    notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
