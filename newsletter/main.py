"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Construction of process-wide collaborators (settings, engine, mail client)
- Exception handlers mapping domain errors to the error envelope
- Security header and request-context middleware
- Router mounting
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from newsletter.api.router import router
from newsletter.core.config import Settings
from newsletter.core.database import build_engine, build_session_factory
from newsletter.core.email import EmailClient
from newsletter.core.errors import APIError, to_api_error
from newsletter.core.logging import configure_logging
from newsletter.core.rate_limiting import (
    limiter,
    limits,
    rate_limit_exceeded_handler,
)
from newsletter.core.responses import ErrorDetail, ErrorResponse
from newsletter.domain.errors import DomainError

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses.

    Headers added:
    - X-Frame-Options: Prevents clickjacking attacks
    - X-Content-Type-Options: Prevents MIME sniffing
    - Referrer-Policy: Controls referrer information leakage
    - Content-Security-Policy: Same-origin resources and form targets only
    - Cross-Origin-Opener-Policy / Cross-Origin-Resource-Policy: same-origin
    - Strict-Transport-Security: Forces HTTPS (production only)
    """

    def __init__(self, app: ASGIApp, *, environment: str) -> None:
        super().__init__(app)
        self._environment = environment

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        # Clickjacking protection
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Control referrer information leakage (confirmation links carry tokens)
        response.headers["Referrer-Policy"] = "no-referrer"

        # Pages post forms to this origin only and load nothing external
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; frame-ancestors 'none'; form-action 'self'"
        )

        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"

        # HSTS only in production (assumes HTTPS via reverse proxy)
        if self._environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a per-request id into structlog context variables.

    Every log line emitted while handling the request carries ``request_id``;
    the same id is echoed in the X-Request-ID response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind request context, then call the app."""
        request_id = str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _error_response(exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.code,
                message=exc.message,
                details=exc.details,
            )
        ).model_dump(),
        headers=exc.headers,
    )


def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate a domain error through to_api_error().

    The full causal chain is logged server-side; the client only sees the
    mapped code and message.

    Args:
        request: The incoming request.
        exc: Domain error raised by a core component.

    Returns:
        JSONResponse with the mapped status code and error envelope.
    """
    api_error = to_api_error(exc)
    if api_error.status_code >= 500:
        logger.error(
            "request_failed",
            error_type=type(exc).__name__,
            path=str(request.url.path),
            exc_info=exc,
        )
    else:
        logger.info(
            "request_rejected",
            error_type=type(exc).__name__,
            status_code=api_error.status_code,
            path=str(request.url.path),
        )
    return _error_response(api_error)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors from FastAPI.

    Missing form fields, query parameters and malformed JSON bodies all end up
    here as 400 VALIDATION_ERROR with field-level details.

    Args:
        request: The incoming request.
        exc: The RequestValidationError from Pydantic.

    Returns:
        JSONResponse with VALIDATION_ERROR code and field-level details.
    """
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details=[
                    {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                    for e in exc.errors()
                ],
            )
        ).model_dump(),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    Returns 500 INTERNAL_ERROR without exposing stack traces.

    Args:
        request: The incoming request.
        exc: The unhandled exception.

    Returns:
        JSONResponse with generic error message (500).
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
            )
        ).model_dump(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release the shared mail client and connection pool on shutdown."""
    logger.info("application_started", environment=app.state.settings.environment)
    yield
    await app.state.email_client.aclose()
    await app.state.engine.dispose()
    logger.info("application_stopped")


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    email_client: EmailClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Every process-wide collaborator is built here, once, and stored on
    ``app.state``; handlers reach them through the dependencies in
    ``newsletter.api.deps``.

    Args:
        settings: Configuration (read from the environment when omitted).
        engine: Pre-built async engine (tests pass a SQLite engine).
        email_client: Pre-built mail client (tests pass one on a
            MockTransport).

    Returns:
        Configured FastAPI application instance.

    Raises:
        SubscriberValidationError: If EMAIL_SENDER is not a valid address.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    engine = engine or build_engine(settings)
    email_client = email_client or EmailClient.from_settings(settings)

    app = FastAPI(
        title="Newsletter",
        version="1.0.0",
        description="Newsletter subscriptions and publishing",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.email_client = email_client

    # Middleware order: Starlette uses LIFO, so the LAST added runs FIRST.
    # Request context must be bound before anything else logs.
    app.add_middleware(SecurityHeadersMiddleware, environment=settings.environment)
    app.add_middleware(RequestContextMiddleware)

    # Register exception handlers
    # Order matters: specific handlers first, then catch-all
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    # Rate limiting (Security)
    limits.login = settings.rate_limit_login
    limits.subscribe = settings.rate_limit_subscribe
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    app.include_router(router)

    return app


# Create the application instance
# Used by uvicorn: uvicorn newsletter.main:app
app = create_app()
