import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from equiptrack.backend import BackendClient
from equiptrack.config import settings
from equiptrack.errors import AppError, SessionExpired
from equiptrack.query_cache import CacheRegistry
from equiptrack.session import credentials_from_request
from equiptrack.routers import health, locations, devices, inventory, maintenance, writeoffs, export, session

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    application.state.backend = BackendClient()
    application.state.caches = CacheRegistry()
    logger.info("Brána připojena k backendu %s", settings.BACKEND_URL)
    try:
        yield
    finally:
        await application.state.backend.aclose()


app = FastAPI(
    title="EquipTrack Gateway",
    description="Klientská brána evidence vybavení",
    version="0.3.0",
    lifespan=lifespan,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, SessionExpired):
        # Po odhlášení nesmí zůstat data předchozí session
        request.app.state.caches.drop(credentials_from_request(request).session_key)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code, "retryable": exc.retryable},
    )


app.include_router(health.router)
app.include_router(session.router)
app.include_router(locations.router)
app.include_router(devices.router)
app.include_router(inventory.router)
app.include_router(maintenance.router)
app.include_router(writeoffs.router)
app.include_router(export.router)
