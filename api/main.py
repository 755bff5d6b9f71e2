"""
api/main.py -- FastAPI application entry point for TaskHub.

Run with:      uvicorn api.main:app --reload
               python asgi.py

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for the configured browser origins
  2. GZipMiddleware    -- compresses responses over 1 KB

Rate limits are applied per route by the decorators in api/limiter.py;
this module only turns RateLimitExceeded into the 429 envelope.

Lifespan builds every process-wide resource exactly once -- the Settings
snapshot, the two stores (each with its own connection pool) and the
TokenService holding the signing key -- and tears them down symmetrically.
Handlers reach them through request.app.state; nothing reads configuration
ad hoc at request time.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.tasks import router as tasks_router
from api.routes.v1.users import router as users_router
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import AppError
from tasks.store import TaskStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskhub.api")

_VERSION = "1.0.0"
_settings = get_settings()
_API_PREFIX = f"/api/{_settings.api_version}"


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The signing key is handed to TokenService here and nowhere
    else.
    """
    logger.info("TaskHub API starting up")
    settings = get_settings()
    app.state.settings = settings
    app.state.user_store = UserStore(settings.database_url)
    app.state.task_store = TaskStore(settings.database_url)
    app.state.token_service = TokenService(settings.secret_key, settings.token_expire_seconds)
    logger.info("Stores initialized (first_run=%s)", not app.state.user_store.has_users())

    yield

    app.state.task_store.close()
    app.state.user_store.close()
    logger.info("TaskHub API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="TaskHub API",
    description="Multi-user task management with role-based access control.",
    version=_VERSION,
    lifespan=lifespan,
    docs_url="/api-docs",
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(GZipMiddleware, minimum_size=1024)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix=_API_PREFIX, tags=["Authentication"])
app.include_router(tasks_router, prefix=_API_PREFIX, tags=["Tasks"])
app.include_router(users_router, prefix=_API_PREFIX, tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"status": "error", "message": ...} envelope
# so API clients can parse errors uniformly.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, errors: list[dict] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map the core.errors taxonomy onto its HTTP status."""
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body or query params fail validation.

    Runs before the handler, so business logic never sees malformed input.
    """
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return _error(400, "Validation failed.", errors)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded.

    Retry-After is the number of seconds until the exhausted window resets,
    taken from the limiter storage. slowapi records the limit that was hit on
    request.state.view_rate_limit; without it the full window length is used.
    """
    retry_after = exc.limit.limit.get_expiry()
    hit = getattr(request.state, "view_rate_limit", None)
    if hit is not None:
        reset_at, _remaining = limiter.limiter.get_window_stats(hit[0], *hit[1])
        retry_after = max(1, math.ceil(reset_at - time.time()))
    response = _error(429, "Too many requests from this IP, please try again later.")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework-raised HTTP errors (unknown route, wrong method) in the envelope."""
    message = "Route not found." if exc.status_code == 404 else str(exc.detail)
    return _error(exc.status_code, message)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only. The client gets a generic message,
    plus the exception text when DEBUG is on.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = "An unexpected error occurred."
    if request.app.state.settings.debug:
        message = f"{message} {exc}"
    return _error(500, message)


# ---------------------------------------------------------------------------
# Health and index
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state. They carry no rate limit, so
# health checks from load balancers are never throttled.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness."""
    return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())


@app.get("/", include_in_schema=False)
async def index() -> dict:
    return {
        "message": "TaskHub API",
        "version": _settings.api_version,
        "documentation": "/api-docs",
        "endpoints": {
            "auth": f"{_API_PREFIX}/auth",
            "tasks": f"{_API_PREFIX}/tasks",
            "users": f"{_API_PREFIX}/users",
        },
    }
