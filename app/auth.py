"""Actor extraction for API routes.

Authentication happens in the gateway in front of this service; it forwards
the authenticated identity as ``X-Actor-Id`` and ``X-Actor-Role`` headers.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, status

from app.services.security_guards import ANONYMOUS, Actor


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """Return the calling actor; requests without headers act anonymously."""
    if x_actor_id is None and x_actor_role is None:
        return ANONYMOUS
    actor_id: int | None = None
    if x_actor_id is not None:
        try:
            actor_id = int(x_actor_id)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-Actor-Id header") from exc
    return Actor.from_role(actor_id, x_actor_role)
