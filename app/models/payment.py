"""Payment ledger rows recorded against an order."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.utils.time import utcnow

PAYMENT_METHODS = ("cash", "qris", "bank_transfer", "e_wallet")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")


class Payment(Base):
    """Single payment attempt; completed rows count toward the order balance."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    method: Mapped[str] = mapped_column(Enum(*PAYMENT_METHODS, name="payment_method"), nullable=False)
    status: Mapped[str] = mapped_column(Enum(*PAYMENT_STATUSES, name="payment_status"), nullable=False, default="pending")
    transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    processed_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    order: Mapped["Order"] = relationship(back_populates="payments")

    __table_args__ = (
        Index("ix_payments_order_status", "order_id", "status"),
        Index("ix_payments_transaction_id", "transaction_id"),
    )
