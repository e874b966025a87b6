"""FastAPI entrypoint for the restaurant self-ordering service."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.deps import ordering_error_handler
from app.api.v1.api import api_router
from app.core.config import settings
from app.db import session as db_session
from app.db.base import Base
from app.db.seed import ensure_demo_menu
from app.services.errors import OrderingError

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.include_router(api_router, prefix="/api/v1")
app.add_exception_handler(OrderingError, ordering_error_handler)


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=db_session.engine)
    with db_session.SessionLocal() as session:
        try:
            ensure_demo_menu(session)
        except Exception:
            logger.exception("[BOOTSTRAP] Demo menu seed failed; continuing startup.")
    logger.info("[BOOTSTRAP] %s ready (env=%s)", settings.app_name, settings.app_env)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
