"""Repository for WebSession operations."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models.web_session import WebSession

# Fields that may be updated via WebSessionRepository.update().
_UPDATABLE_FIELDS: frozenset[str] = frozenset({"user_id", "flash"})


class WebSessionRepository:
    """Stateless repository for WebSession table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        session_id: str,
        expires_at: datetime,
        user_id: uuid.UUID | None = None,
        flash: str | None = None,
    ) -> WebSession:
        """Store a new session row.

        Args:
            db: Async database session.
            session_id: SHA-256 hex of the session key.
            expires_at: Expiry instant.
            user_id: Authenticated user, if any.
            flash: Pending flash message, if any.

        Returns:
            Created WebSession.
        """
        record = WebSession(
            id=session_id,
            user_id=user_id,
            flash=flash,
            expires_at=expires_at,
        )
        db.add(record)
        await db.flush()
        return record

    @staticmethod
    async def get_active(db: AsyncSession, session_id: str) -> WebSession | None:
        """Fetch a session that has not expired.

        Expiry is compared in SQL so stored timestamps are never compared
        against Python datetimes of a different tz-awareness.
        """
        stmt = select(WebSession).where(
            WebSession.id == session_id,
            WebSession.expires_at > datetime.now(UTC),
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def update(
        db: AsyncSession,
        record: WebSession,
        **kwargs: uuid.UUID | str | None,
    ) -> WebSession:
        """Update session fields.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        for field, value in kwargs.items():
            setattr(record, field, value)
        await db.flush()
        return record

    @staticmethod
    async def delete(db: AsyncSession, session_id: str) -> None:
        """Delete a session row."""
        await db.execute(delete(WebSession).where(WebSession.id == session_id))

    @staticmethod
    async def delete_expired(db: AsyncSession) -> int:
        """Delete all expired sessions.

        Returns:
            Number of deleted rows.
        """
        # Compared in SQL only; identity-map rows may hold naive timestamps
        stmt = (
            delete(WebSession)
            .where(WebSession.expires_at <= datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
