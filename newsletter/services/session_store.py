"""Server-side sessions and one-shot flash messages.

The browser cookie carries ``"{session_key}.{hmac tag}"``. The key is a
random token; the database row is stored under SHA-256(key), so neither a
leaked table nor a forged cookie yields a usable session.

A row is only written once something is stored (user id or flash), so
anonymous page views do not create sessions. Writing a new row also purges
rows past their expiry.
"""

import hashlib
import secrets
import uuid
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from newsletter.core.config import Settings
from newsletter.core.signing import sign_cookie_value, unsign_cookie_value
from newsletter.domain.errors import IntegrityError
from newsletter.models.web_session import WebSession
from newsletter.repositories.web_session_repository import WebSessionRepository

logger = structlog.get_logger()


def _new_session_key() -> str:
    # token_urlsafe never emits ".", the cookie separator
    return secrets.token_urlsafe(32)


def _session_id(session_key: str) -> str:
    return hashlib.sha256(session_key.encode()).hexdigest()


class TypedSession:
    """Typed access to the current request's session.

    Args:
        db: Async database session for the current request.
        secret: HMAC secret used to sign the cookie.
        ttl: Lifetime of newly written rows.
        session_key: Key from a verified cookie, if any.
        record: Active row for ``session_key``, if any.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        secret: bytes,
        ttl: timedelta,
        session_key: str | None = None,
        record: WebSession | None = None,
    ) -> None:
        self._db = db
        self._secret = secret
        self._ttl = ttl
        self._session_key = session_key
        self._record = record
        self._cleared = False

    @classmethod
    async def load(
        cls,
        db: AsyncSession,
        cookie_value: str | None,
        *,
        secret: bytes,
        ttl: timedelta,
    ) -> "TypedSession":
        """Resolve the session for a request cookie.

        A missing cookie, a bad signature, or a missing/expired row all give
        an empty session. A bad signature is logged; the reason is never
        returned to the client.
        """
        if not cookie_value:
            return cls(db, secret=secret, ttl=ttl)

        try:
            session_key = unsign_cookie_value(cookie_value, secret)
        except IntegrityError:
            logger.warning("session_cookie_rejected")
            return cls(db, secret=secret, ttl=ttl)

        record = await WebSessionRepository.get_active(db, _session_id(session_key))
        if record is None:
            return cls(db, secret=secret, ttl=ttl)
        return cls(db, secret=secret, ttl=ttl, session_key=session_key, record=record)

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    async def _ensure_record(self) -> WebSession:
        if self._record is None:
            purged = await WebSessionRepository.delete_expired(self._db)
            if purged:
                logger.info("expired_sessions_purged", count=purged)
            if self._session_key is None:
                self._session_key = _new_session_key()
            self._record = await WebSessionRepository.create(
                self._db,
                session_id=_session_id(self._session_key),
                expires_at=datetime.now(UTC) + self._ttl,
            )
            self._cleared = False
        return self._record

    async def renew(self) -> None:
        """Rotate the session key, keeping stored data.

        Called before storing a user id at login so a session id planted
        before authentication is useless afterwards.
        """
        old_record = self._record
        self._session_key = _new_session_key()
        self._record = None
        if old_record is None:
            return

        user_id, flash = old_record.user_id, old_record.flash
        await WebSessionRepository.delete(self._db, old_record.id)
        self._record = await WebSessionRepository.create(
            self._db,
            session_id=_session_id(self._session_key),
            expires_at=datetime.now(UTC) + self._ttl,
            user_id=user_id,
            flash=flash,
        )

    async def log_out(self) -> None:
        """Delete the session row; the cookie is cleared by apply_cookie()."""
        if self._record is not None:
            await WebSessionRepository.delete(self._db, self._record.id)
        self._record = None
        self._session_key = None
        self._cleared = True

    # -----------------------------------------------------------------
    # Typed values
    # -----------------------------------------------------------------

    async def insert_user_id(self, user_id: uuid.UUID) -> None:
        """Mark the session as authenticated."""
        record = await self._ensure_record()
        await WebSessionRepository.update(self._db, record, user_id=user_id)

    def get_user_id(self) -> uuid.UUID | None:
        """Authenticated user id, or None for anonymous sessions."""
        if self._record is None:
            return None
        return self._record.user_id

    async def set_flash(self, message: str) -> None:
        """Store a message to show on the next page render."""
        record = await self._ensure_record()
        await WebSessionRepository.update(self._db, record, flash=message)

    async def pop_flash(self) -> str | None:
        """Read and remove the pending flash message (read-once)."""
        if self._record is None or self._record.flash is None:
            return None
        message = self._record.flash
        await WebSessionRepository.update(self._db, self._record, flash=None)
        return message

    # -----------------------------------------------------------------
    # Cookie
    # -----------------------------------------------------------------

    def apply_cookie(self, response: Response, settings: Settings) -> None:
        """Set, refresh or clear the session cookie on ``response``."""
        if self._record is not None and self._session_key is not None:
            response.set_cookie(
                key=settings.session_cookie_name,
                value=sign_cookie_value(self._session_key, self._secret),
                max_age=int(self._ttl.total_seconds()),
                httponly=True,
                secure=settings.session_cookie_secure,
                samesite=settings.session_cookie_samesite,
                path="/",
            )
        elif self._cleared:
            response.delete_cookie(
                key=settings.session_cookie_name,
                path="/",
                httponly=True,
                secure=settings.session_cookie_secure,
                samesite=settings.session_cookie_samesite,
            )
