"""HMAC-SHA256 signing for state carried across redirects.

Two uses:
- Session cookies: ``"{session_key}.{hex tag}"`` so a forged or tampered
  cookie is rejected before any database lookup.
- Login error query strings: ``error=<url-encoded message>&tag=<hex>``.

Tags are verified in constant time and a mismatch never says why.
The signed bytes must be exactly what verification recomputes, so the
query-string payload is always built by encode_error_query_payload().
"""

import hashlib
import hmac
from urllib.parse import quote

from newsletter.domain.errors import IntegrityError

_COOKIE_SEPARATOR = "."


def sign(payload: bytes, secret: bytes) -> bytes:
    """Compute the HMAC-SHA256 tag of ``payload``.

    Args:
        payload: Exact bytes to protect.
        secret: Long-lived server secret.

    Returns:
        32-byte tag.
    """
    return hmac.new(secret, payload, hashlib.sha256).digest()


def verify(payload: bytes, tag: bytes, secret: bytes) -> None:
    """Check ``tag`` against ``payload`` in constant time.

    Raises:
        IntegrityError: If the tag does not match.
    """
    expected = sign(payload, secret)
    if not hmac.compare_digest(expected, tag):
        raise IntegrityError("HMAC tag mismatch")


# =============================================================================
# Login error query string
# =============================================================================


def encode_error_query_payload(message: str) -> str:
    """Canonical ``error=<url-encoded message>`` payload.

    Percent-encodes everything except unreserved characters, so the same
    message always produces the same bytes.
    """
    return f"error={quote(message, safe='')}"


def build_error_query(message: str, secret: bytes) -> str:
    """Build ``error=...&tag=...`` for a redirect to the login page."""
    payload = encode_error_query_payload(message)
    tag = sign(payload.encode(), secret)
    return f"{payload}&tag={tag.hex()}"


def verify_error_query(error: str, tag_hex: str, secret: bytes) -> str:
    """Verify a decoded ``error``/``tag`` query pair.

    Args:
        error: Decoded ``error`` query parameter.
        tag_hex: ``tag`` query parameter (hex).
        secret: Server secret.

    Returns:
        The verified error message.

    Raises:
        IntegrityError: If the tag is not hex or does not match.
    """
    try:
        tag = bytes.fromhex(tag_hex)
    except ValueError as exc:
        raise IntegrityError("HMAC tag is not valid hex") from exc
    verify(encode_error_query_payload(error).encode(), tag, secret)
    return error


# =============================================================================
# Session cookie
# =============================================================================


def sign_cookie_value(session_key: str, secret: bytes) -> str:
    """Return the cookie value for ``session_key``."""
    tag = sign(session_key.encode(), secret)
    return f"{session_key}{_COOKIE_SEPARATOR}{tag.hex()}"


def unsign_cookie_value(cookie_value: str, secret: bytes) -> str:
    """Extract the session key from a signed cookie value.

    Raises:
        IntegrityError: If the value is malformed or the tag does not match.
    """
    session_key, separator, tag_hex = cookie_value.rpartition(_COOKIE_SEPARATOR)
    if not separator or not session_key:
        raise IntegrityError("Malformed signed cookie")
    try:
        tag = bytes.fromhex(tag_hex)
    except ValueError as exc:
        raise IntegrityError("HMAC tag is not valid hex") from exc
    verify(session_key.encode(), tag, secret)
    return session_key
