"""
PairQuiz — ASGI application

Wires the HTTP surface together:
- structlog JSON logging, configured once at import
- request logging, per-request timeout and CORS middleware
- domain exceptions translated to ``{"error", "detail"}`` JSON responses
- ``/health`` (process up) and ``/health/deep`` (database reachable)
- lifespan: warm the pool on startup, wait for in-flight requests and
  dispose the engine on shutdown

Run with ``uvicorn pairquiz.main:app``.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from pairquiz.config import get_settings
from pairquiz.database import async_session_factory, engine
from pairquiz.exceptions import (
    ConflictError,
    DuplicateVoucherError,
    ExhaustedRetriesError,
    NotFoundError,
    NotReadyError,
    PairQuizError,
    ValidationError,
)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(0),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("pairquiz")

REQUEST_TIMEOUT_SECONDS = 30.0
SHUTDOWN_GRACE_SECONDS = 15.0


# ── In-flight request tracking ────────────────────────────────────────────────

class _InFlight:
    """Counts requests being served so shutdown can wait for them."""

    def __init__(self) -> None:
        self.count = 0

    def enter(self) -> None:
        self.count += 1

    def leave(self) -> None:
        self.count -= 1

    async def wait_idle(self, grace_seconds: float) -> None:
        deadline = time.monotonic() + grace_seconds
        while self.count > 0:
            if time.monotonic() >= deadline:
                logger.warning("shutdown_grace_expired", in_flight=self.count)
                return
            await asyncio.sleep(0.25)


_in_flight = _InFlight()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(
        "startup_begin",
        environment=settings.ENVIRONMENT,
        admin_enabled=settings.admin_enabled,
    )
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("startup_complete")

    yield

    logger.info("shutdown_begin", in_flight=_in_flight.count)
    await _in_flight.wait_idle(SHUTDOWN_GRACE_SECONDS)
    await engine.dispose()
    logger.info("shutdown_complete")


# ── Middleware ────────────────────────────────────────────────────────────────

class TimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a request runs longer than ``timeout_seconds``."""

    def __init__(self, app, timeout_seconds: float = REQUEST_TIMEOUT_SECONDS) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "request_timeout",
                method=request.method,
                path=request.url.path,
                timeout=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=504,
                content={"error": "timeout", "detail": "Request timed out"},
            )


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One ``request_handled`` event per request, with status and latency."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        started = time.perf_counter()
        log = logger.bind(method=request.method, path=request.url.path)

        _in_flight.enter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception(
                "request_error",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            _in_flight.leave()

        log.info(
            "request_handled",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response


# ── Domain errors → HTTP ──────────────────────────────────────────────────────

# First matching family wins.
_ERROR_STATUS: list[tuple[type[PairQuizError], int]] = [
    (NotFoundError, 404),
    (ConflictError, 409),
    (NotReadyError, 409),
    (ValidationError, 422),
    (ExhaustedRetriesError, 503),
    (DuplicateVoucherError, 500),
]


def status_for(exc: PairQuizError) -> int:
    for family, status_code in _ERROR_STATUS:
        if isinstance(exc, family):
            return status_code
    return 500


async def pairquiz_error_handler(request: Request, exc: PairQuizError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.bind(path=request.url.path, error=exc.kind, status=status_code)
    if status_code >= 500:
        log.error("domain_error", detail=str(exc))
    else:
        log.info("domain_error", detail=str(exc))
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "detail": str(exc)},
    )


# ── Application ───────────────────────────────────────────────────────────────

settings = get_settings()

app = FastAPI(
    title="PairQuiz",
    description="Two-player compatibility quiz with match vouchers",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.add_exception_handler(PairQuizError, pairquiz_error_handler)

# Starlette runs the last-added middleware first: CORS, timeout, logging.
app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(TimeoutMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    return {"status": "healthy"}


@app.get("/health/deep", tags=["health"])
async def health_deep() -> dict:
    """Readiness: also round-trips a query to the database."""
    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("health_db_failure", error=str(exc))
        return {"status": "degraded", "database": f"error: {exc}"}
    return {"status": "healthy", "database": "connected"}


from pairquiz.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
