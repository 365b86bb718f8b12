"""FastAPI application entry point."""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator
import uuid

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from lumen.api.v1 import analytics, health
from lumen.config import settings
from lumen.database import engine
from lumen.middleware.logging import LoggingMiddleware, setup_logging
from lumen.middleware.metrics import MetricsMiddleware
from lumen.migrations import upgrade_database
from lumen.schemas.error import REMEDIATION_HINTS, ErrorCode, ErrorDetail, ErrorResponse
from lumen.tracing import setup_tracing

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env)
    if settings.auto_migrate:
        await asyncio.to_thread(upgrade_database)
    yield
    logger.info("application_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="Lumen Quest Analytics",
    description="Subscription analytics reports, insights and recommendations",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
app.mount("/metrics", make_asgi_app())

if settings.otel_enabled:
    setup_tracing(app, engine)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or f"req_{uuid.uuid4().hex[:12]}"


# Exception handlers with structured error responses
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with field-level validation errors.
    """
    request_id = _request_id(request)

    code_mapping = {
        "enum": ErrorCode.INVALID_ENUM_VALUE,
        "missing": ErrorCode.MISSING_REQUIRED_FIELD,
        "greater_than_equal": ErrorCode.VALUE_TOO_SMALL,
        "less_than_equal": ErrorCode.VALUE_TOO_LARGE,
    }

    details = [
        ErrorDetail(
            code=code_mapping.get(error["type"], "validation_error"),
            message=error["msg"],
            field=".".join(str(loc) for loc in error["loc"]),
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    body = ErrorResponse(
        error="ValidationError",
        message="Request validation failed",
        details=details,
        remediation="Check the API documentation for correct request format at /docs",
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(mode="json"),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handle database errors raised while building or storing reports.

    Returns 503 Service Unavailable.
    """
    request_id = _request_id(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    error_message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    body = ErrorResponse(
        error="DatabaseError",
        message="A database error occurred",
        details=[ErrorDetail(code=ErrorCode.DATABASE_ERROR, message=error_message)],
        remediation=REMEDIATION_HINTS.get(ErrorCode.DATABASE_ERROR),
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(mode="json"),
        headers={"Retry-After": "30"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the stack trace and returns a safe 500 response.
    """
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
    )

    body = ErrorResponse(
        error="InternalServerError",
        message="An unexpected error occurred",
        details=[
            ErrorDetail(
                code=ErrorCode.INTERNAL_ERROR,
                message=str(exc) if settings.debug else "Internal server error",
            )
        ],
        remediation="Please contact support with the request ID",
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Lumen Quest Analytics",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
        "timestamp": datetime.utcnow().isoformat(),
    }


app.include_router(health.router, tags=["Health"])
app.include_router(analytics.router, prefix="/v1", tags=["Analytics"])
