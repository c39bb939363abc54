"""FastAPI entrypoint for the costume order lifecycle service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.db import session as db_session
from app.db.base import Base
from app.db.seed import ensure_admin_user
from app.services.audit_service import AuditRecorder
from app.services.background import BackgroundWorker
from app.services.lifecycle_service import LifecycleEngine
from app.services.notification_service import DeliveryDispatcher, LoggingDeliveryDispatcher, NotificationFanout

logger = logging.getLogger(__name__)

if settings.debug:
    logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix="/api/v1")


def build_lifecycle_engine(
    session_factory,
    dispatcher: DeliveryDispatcher | None = None,
    worker: BackgroundWorker | None = None,
) -> LifecycleEngine:
    """Wire the lifecycle engine with its background collaborators."""
    worker = worker or BackgroundWorker()
    fanout = NotificationFanout(session_factory, dispatcher or LoggingDeliveryDispatcher())
    return LifecycleEngine(session_factory, worker, fanout, AuditRecorder(session_factory))


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=db_session.engine)
    with db_session.SessionLocal() as session:
        try:
            ensure_admin_user(session)
        except Exception:
            logger.exception("[BOOTSTRAP] Seed/bootstrap failed; continuing startup.")

    worker = BackgroundWorker()
    if settings.notification_worker_enabled:
        worker.start()
    else:
        logger.warning("[BOOTSTRAP] Background worker disabled; audit and notification tasks stay queued")
    app.state.background_worker = worker
    app.state.lifecycle_engine = build_lifecycle_engine(db_session.SessionLocal, worker=worker)
    logger.info("[BOOTSTRAP] Lifecycle engine ready")


@app.on_event("shutdown")
def shutdown() -> None:
    worker: BackgroundWorker | None = getattr(app.state, "background_worker", None)
    if worker is None:
        return
    if not worker.is_running and worker.pending:
        logger.warning("[BOOTSTRAP] Dropping %s queued background tasks", worker.pending)
    worker.stop(timeout=settings.lifecycle_timeout_seconds)


@app.get("/health", include_in_schema=False)
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/__debug/routes", include_in_schema=False, response_class=PlainTextResponse)
def debug_routes() -> PlainTextResponse:
    lines = []
    for route in app.routes:
        methods = ",".join(sorted(getattr(route, "methods", None) or []))
        endpoint = getattr(route, "endpoint", None)
        lines.append(f"{route.path} [{methods}] -> {getattr(endpoint, '__name__', '<no-endpoint>')}")
    return PlainTextResponse("\n".join(sorted(lines)))
