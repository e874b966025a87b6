"""Shared API dependencies and domain-error translation."""

from fastapi import Request
from fastapi.responses import JSONResponse

from app.db import session as db_session
from app.services.errors import ConflictError, NotFoundError, OrderingError, StaffRequired, ValidationFailure
from app.services.order_service import OrderService


def get_order_service() -> OrderService:
    """Build the order service on the current session factory."""
    return OrderService(session_factory=db_session.SessionLocal)


def status_code_for(exc: OrderingError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, StaffRequired):
        return 403
    if isinstance(exc, ValidationFailure):
        return 422
    if isinstance(exc, ConflictError):
        return 409
    return 400


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    """Render a domain error as ``{"detail": ..., "code": ...}``."""
    return JSONResponse(status_code=status_code_for(exc), content={"detail": exc.message, "code": exc.code})
