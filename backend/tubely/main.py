"""
Tubely FastAPI Application Entry Point

- FastAPI application with lifespan-managed MongoDB connection and logging setup
- CORS middleware for the browser frontend
- Request logging middleware adding X-Request-ID and X-Process-Time headers
- One exception handler rendering every ``TubelyError`` as
  ``{"detail": {"error": kind, "message": ...}}`` with its HTTP status
- API routers under /api/v1, plus / and /health

Usage:
    uvicorn tubely.main:app --host 0.0.0.0 --port 8091 --reload
"""

import logging
import time
import uuid

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tubely import __app_name__, __version__
from tubely.api.v1 import api_router
from tubely.config import get_settings
from tubely.core.database import close_db, init_db
from tubely.core.exceptions import TubelyError
from tubely.utils.logger import setup_logging


logger = logging.getLogger(__name__)

HTTP_ERROR_THRESHOLD = 400
HTTP_SERVER_ERROR_THRESHOLD = 500


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging and MongoDB on startup; close MongoDB on shutdown."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "Tubely API starting",
        extra={
            "environment": settings.app_env,
            "debug": settings.debug,
            "bind": f"{settings.host}:{settings.port}",
        },
    )

    await init_db(settings)
    logger.info("Tubely API ready to accept requests")

    yield

    logger.info("Tubely API shutting down")
    await close_db()


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title="Tubely API",
    description=(
        "Video hosting backend: metadata records, video ingestion with fast-start "
        "remuxing and aspect-ratio placement, and short-lived signed playback URLs."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request with its status and timing, and tag the response."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %s]",
        request.method,
        request.url.path,
        response.status_code,
        extra={"request_id": request_id, "duration_ms": process_time_ms},
    )
    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    log_extra = {"error": exc.kind, "path": request.url.path, "details": exc.details}
    if exc.status_code >= HTTP_SERVER_ERROR_THRESHOLD:
        logger.error("Request error: %s", exc.message, extra=log_extra, exc_info=exc)
    else:
        logger.warning("Request error: %s", exc.message, extra=log_extra)

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


# =============================================================================
# API Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get("/", tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    return {
        "name": "Tubely API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": __app_name__,
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


if __name__ == "__main__":
    uvicorn.run(
        "tubely.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level,
    )
