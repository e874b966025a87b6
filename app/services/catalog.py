"""Menu catalog lookup used when line items are priced."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy.orm import Session

from app.models.menu import Menu
from app.services.errors import MenuNotFound
from app.utils.money import to_money


@dataclass(frozen=True)
class MenuSnapshot:
    """Point-in-time view of a menu entry."""

    menu_id: int
    name: str
    price: Decimal
    is_available: bool


class MenuCatalog(Protocol):
    def lookup(self, menu_id: int) -> MenuSnapshot:
        """Return the snapshot for ``menu_id`` or raise ``MenuNotFound``."""
        ...


class SqlMenuCatalog:
    """Catalog backed by the ``menus`` table, read in the caller's session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def lookup(self, menu_id: int) -> MenuSnapshot:
        menu: Menu | None = self._db.get(Menu, menu_id)
        if menu is None:
            raise MenuNotFound(menu_id)
        return MenuSnapshot(
            menu_id=menu.id,
            name=menu.name,
            price=to_money(menu.price),
            is_available=bool(menu.is_available),
        )
