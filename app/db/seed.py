"""Database seeding helpers."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.menu import Menu

logger = logging.getLogger(__name__)

DEMO_MENU: tuple[tuple[str, Decimal], ...] = (
    ("Nasi Goreng", Decimal("25000.00")),
    ("Mie Ayam", Decimal("20000.00")),
    ("Es Teh Manis", Decimal("5000.00")),
    ("Kopi Susu", Decimal("12000.00")),
)


def ensure_demo_menu(session: Session) -> int:
    """Seed a small menu in development when the table is empty."""
    if settings.app_env != "dev" or not settings.seed_demo_menu:
        return 0

    existing: int = session.scalar(select(func.count()).select_from(Menu)) or 0
    if existing:
        return 0

    session.add_all(Menu(name=name, price=price, is_available=True) for name, price in DEMO_MENU)
    session.commit()
    logger.info("[BOOTSTRAP] seeded %s demo menu items", len(DEMO_MENU))
    return len(DEMO_MENU)
