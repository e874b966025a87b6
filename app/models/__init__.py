"""Application models package."""

from app.models.menu import Menu
from app.models.order import Order, OrderItem
from app.models.payment import Payment

__all__ = ["Menu", "Order", "OrderItem", "Payment"]
