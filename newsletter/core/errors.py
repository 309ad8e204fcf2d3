"""API error classes and the domain-to-HTTP error mapping.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- Domain errors stay framework-agnostic; to_api_error() is the only place
  that knows which domain failure becomes which status code
"""

from newsletter.domain.errors import (
    AuthError,
    ConfirmUnauthorizedError,
    DomainError,
    PublishAuthError,
    SubscriberValidationError,
)

# Security: single message for every credential failure (no oracle)
AUTHENTICATION_FAILED_MSG = "Authentication failed"

PUBLISH_REALM_HEADER = {"WWW-Authenticate": 'Basic realm="publish"'}


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "UNAUTHORIZED").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
        headers: Optional response headers (e.g., WWW-Authenticate).
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.headers = headers
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400)."""

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedError(APIError):
    """Authentication required or rejected (401)."""

    def __init__(
        self,
        message: str = "Authentication required",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            headers=headers,
        )


class InternalError(APIError):
    """Unexpected server error (500).

    Use for unhandled exceptions. Never expose stack traces to clients.
    """

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=500,
        )


def to_api_error(exc: DomainError) -> APIError:
    """Map a domain error to the HTTP error returned to the client.

    Validation messages are safe to echo (they only repeat the caller's input).
    Every other message is replaced by a fixed string so internal cause
    chains never reach the response body.

    Args:
        exc: Domain error raised by a core component.

    Returns:
        APIError carrying status code, code and client-safe message.
    """
    if isinstance(exc, SubscriberValidationError):
        return ValidationError(str(exc))
    if isinstance(exc, ConfirmUnauthorizedError):
        return UnauthorizedError("Invalid subscription token")
    if isinstance(exc, PublishAuthError):
        return UnauthorizedError(
            AUTHENTICATION_FAILED_MSG, headers=dict(PUBLISH_REALM_HEADER)
        )
    if isinstance(exc, AuthError):
        return UnauthorizedError(AUTHENTICATION_FAILED_MSG)
    return InternalError()
