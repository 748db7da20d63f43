"""
CertifyHub API - Main application entry point.
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from structlog.contextvars import bind_contextvars, clear_contextvars

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import ErrorCode, ErrorResponse
from app.core.exceptions import CertifyHubException, RejectionError
from app.core.logging import get_logger, log_error_details, log_request_details, setup_logging
from app.infrastructure.database.base import engine

setup_logging()
logger = get_logger(__name__)


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT or settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            SqlalchemyIntegration(),
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables in development and dispose the engine on exit."""
    logger.info(
        "application_starting",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # Production schemas are managed by Alembic
    if settings.is_development:
        from app.infrastructure.database.base import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    yield

    logger.info("application_stopping")
    await engine.dispose()


def _docs_path(name: str) -> Optional[str]:
    return None if settings.is_production else f"{settings.API_V1_PREFIX}/{name}"


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.APP_VERSION,
    openapi_url=_docs_path("openapi.json"),
    docs_url=_docs_path("docs"),
    redoc_url=_docs_path("redoc"),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id for the log context and time the request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    clear_contextvars()
    bind_contextvars(request_id=request_id)

    started = time.perf_counter()
    logger.info(
        "request_started",
        **log_request_details(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        ),
    )

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request_completed",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response


if settings.SENTRY_DSN:
    app.add_middleware(SentryAsgiMiddleware)


@app.exception_handler(CertifyHubException)
async def certifyhub_exception_handler(request: Request, exc: CertifyHubException):
    """
    Render domain errors.

    Rejections share one response body; the real reason only goes to the log.
    """
    error = ErrorResponse.from_exception(exc)
    if isinstance(exc, RejectionError):
        logger.info(
            "request_rejected",
            reason=exc.message,
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
    else:
        logger.warning(
            "request_failed",
            **log_error_details(exc, path=request.url.path, method=request.method),
        )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last-resort handler; internals are only exposed outside production."""
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        path=request.url.path,
        method=request.method,
    )

    error = ErrorResponse(ErrorCode.SYS_INTERNAL_ERROR, 500)
    if not settings.is_production:
        error.message = str(exc)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root() -> Dict[str, Optional[str]]:
    """Service name, version and where to find the docs and health check."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": _docs_path("docs"),
        "health": f"{settings.API_V1_PREFIX}/health",
    }
