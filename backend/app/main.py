"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: logging, MongoDB, the Play verifier
    (built once and injected into the purchase handlers), the optional
    scheduled match pool refresh, routers and exception handlers.

Dependencies:
    - app.database
    - app.providers.google_play
    - app.workers.match_pool_refresh
"""

import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import (
    ConnectionFailure,
    DuplicateKeyError,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from app.config import settings
import app.database as _db
from app.database import connect_db, close_db
from app.errors import ServiceError
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.providers.api_football import api_football_provider
from app.providers.google_play import build_play_verifier

logger = logging.getLogger("matchcredit")
scheduler = AsyncIOScheduler()


def _register_match_pool_job() -> None:
    from app.workers.match_pool_refresh import run_match_pool_refresh

    scheduler.add_job(
        run_match_pool_refresh,
        "interval",
        id="match_pool_refresh",
        hours=settings.MATCH_POOL_REFRESH_HOURS,
        replace_existing=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_db()

    # Raises on a malformed service account blob: refuse to start.
    app.state.play_verifier = build_play_verifier(settings)
    logger.info("Play verifier ready for package %s", app.state.play_verifier.package_name)

    if settings.MATCH_POOL_AUTO_REFRESH:
        _register_match_pool_job()
        logger.info(
            "Scheduled match pool refresh every %dh", settings.MATCH_POOL_REFRESH_HOURS,
        )
    else:
        logger.info("Scheduled match pool refresh disabled; use /api/match-pool/refresh")
    scheduler.start()

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    await app.state.play_verifier.aclose()
    await api_football_provider.aclose()
    await close_db()


app = FastAPI(
    title="MatchCredit",
    description="Play purchase verification and match pool refresh",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Structured logging
app.add_middleware(StructuredLoggingMiddleware)

# Routers
from app.routers.purchases import router as purchases_router
from app.routers.match_pool import router as match_pool_router

app.include_router(purchases_router)
app.include_router(match_pool_router)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean validation errors without leaking internal field paths."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        # Strip the "body" / "query" prefix for cleaner messages
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[-1]) if loc else "unknown"
        errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation error.", "code": "invalid-argument", "errors": errors},
    )


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return JSONResponse(status_code=409, content={"detail": "Duplicate entry.", "code": "already-exists"})


@app.exception_handler(ServerSelectionTimeoutError)
async def db_timeout_handler(request: Request, exc: ServerSelectionTimeoutError):
    logger.error("Database timeout: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(ConnectionFailure)
async def db_connection_handler(request: Request, exc: ConnectionFailure):
    logger.error("Database connection failure: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable."})


@app.exception_handler(OperationFailure)
async def db_operation_handler(request: Request, exc: OperationFailure):
    logger.error("Database operation error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred.", "code": "internal"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the real error, return a safe generic message."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred.", "code": "internal"})


@app.get("/health")
async def health():
    """Health check -- verifies DB connection and fixture provider status."""
    try:
        result = await _db.db.command("ping")
        db_ok = result.get("ok") == 1.0
    except Exception:
        db_ok = False

    return {
        "status": "healthy" if db_ok else "degraded",
        "db": "connected" if db_ok else "disconnected",
        "fixture_provider": {
            "circuit_open": api_football_provider.circuit_open,
        },
    }
