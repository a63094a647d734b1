"""alertivo FastAPI application."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from alertivo.api import alerts, auth, health, reports, responders, ws
from alertivo.core.alert_feed import AlertFeed
from alertivo.core.config import settings
from alertivo.core.errors import DispatchError, ErrorKind
from alertivo.db.session import SessionLocal
from alertivo.services.liveness_service import run_liveness_loop

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.ACCOUNT_LOCKED: 423,
    ErrorKind.INVALID_OTP: 400,
    ErrorKind.INTERNAL: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    monitor = None
    if settings.liveness_sweep_enabled:
        monitor = asyncio.create_task(run_liveness_loop(SessionLocal, settings.liveness_sweep_interval_seconds))
    yield
    if monitor is not None:
        monitor.cancel()
        try:
            await monitor
        except asyncio.CancelledError:
            pass
        logger.info("Liveness monitor stopped")


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.state.alert_feed = AlertFeed()


@app.exception_handler(DispatchError)
async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    body = {"detail": exc.message, "error": exc.kind.value}
    headers = None
    if exc.retry_after_seconds is not None:
        body["retry_after_seconds"] = exc.retry_after_seconds
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(reports.router)
app.include_router(responders.router)
app.include_router(alerts.router)
app.include_router(ws.router)
