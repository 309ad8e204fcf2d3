"""Rate limiting configuration using slowapi.

Security: Slows credential stuffing against /login and subscription spam
against /subscriptions. Keyed on client IP.

Usage in routers:
    from newsletter.core.rate_limiting import limiter, limits

    @router.post("/login")
    @limiter.limit(lambda: limits.login)
    async def login(request: Request, ...):
        ...
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

# Global limiter instance (decorators need it at import time).
# create_app() applies Settings.rate_limit_enabled.
# Configured with in-memory storage (suitable for single-instance deployment)
limiter = Limiter(key_func=get_remote_address)


class RateLimits:
    """Mutable holder for per-route limit strings, set by create_app()."""

    login: str = "5/minute"
    subscribe: str = "10/minute"


limits = RateLimits()


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # Parse retry-after from exception detail (e.g., "5 per 1 minute")
    # Fallback to 60 seconds if parsing fails
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
