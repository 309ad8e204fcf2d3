"""Domain error families.

Each core component raises exceptions from its own family. None of these
know about HTTP; the mapping to status codes lives in
``newsletter.core.errors.to_api_error``.

Families:
- SubscriberValidationError: raw input rejected by the identity parsers
- SubscribeError: subscription engine, subscribe()
- ConfirmError: subscription engine, confirm()
- AuthError: credential store
- PublishError: newsletter dispatcher
- TransportError: mail gateway
- IntegrityError: HMAC tag mismatch
"""


class DomainError(Exception):
    """Base class for errors raised by the core components."""


# =============================================================================
# Identity / Subscription Engine
# =============================================================================


class SubscribeError(DomainError):
    """subscribe() failed."""


class SubscriberValidationError(SubscribeError, ValueError):
    """A raw name or email was rejected. Never touches storage."""


class SubscribeUnexpectedError(SubscribeError):
    """Storage or mail delivery failed while subscribing."""


class ConfirmError(DomainError):
    """confirm() failed."""


class ConfirmUnauthorizedError(ConfirmError):
    """Token unknown or malformed (same shape for both)."""


class ConfirmUnexpectedError(ConfirmError):
    """Storage failed while confirming."""


# =============================================================================
# Credential Store
# =============================================================================


class AuthError(DomainError):
    """Credential validation failed."""


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password (indistinguishable to callers)."""


class AuthUnexpectedError(AuthError):
    """Storage failure or malformed stored hash."""


# =============================================================================
# Newsletter Dispatcher
# =============================================================================


class PublishError(DomainError):
    """publish() failed."""


class PublishAuthError(PublishError):
    """Publisher credentials missing or rejected."""


class PublishUnexpectedError(PublishError):
    """Fan-out aborted.

    Attributes:
        recipient: Address whose send failed, when the abort was caused by a
            delivery failure.
    """

    def __init__(self, message: str, *, recipient: str | None = None) -> None:
        self.recipient = recipient
        super().__init__(message)


# =============================================================================
# Collaborators
# =============================================================================


class TransportError(DomainError):
    """The mail provider call failed (status, timeout or connection)."""


class IntegrityError(DomainError):
    """HMAC tag did not match the payload."""
