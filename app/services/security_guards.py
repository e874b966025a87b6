"""Actor capability passed into the core and the staff guard applied to it."""

from __future__ import annotations

from dataclasses import dataclass

from app.services.errors import StaffRequired

STAFF_ROLES: frozenset[str] = frozenset({"ADMIN", "CASHIER"})


@dataclass(frozen=True)
class Actor:
    """Pre-authorized caller identity; credentials are checked upstream."""

    actor_id: int | None = None
    is_staff: bool = False

    @classmethod
    def from_role(cls, actor_id: int | None, role: str | None) -> "Actor":
        return cls(actor_id=actor_id, is_staff=str(role or "").strip().upper() in STAFF_ROLES)


ANONYMOUS: Actor = Actor()


def ensure_staff(actor: Actor, operation: str) -> None:
    """Ensure the actor carries staff capability."""
    if not actor.is_staff:
        raise StaffRequired(operation)
