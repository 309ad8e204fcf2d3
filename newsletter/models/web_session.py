"""Web session model - server-side session and flash storage.

The browser only holds a signed random key; the row is looked up by the
SHA-256 of that key, so a database leak does not yield usable cookies.
"""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from newsletter.models.base import Base, CreatedAtMixin


class WebSession(Base, CreatedAtMixin):
    """Server-side session.

    Attributes:
        id: SHA-256 hex digest of the session key.
        user_id: Authenticated publisher, NULL for anonymous sessions.
        flash: One-shot message shown on the next page render.
        expires_at: Rows past this instant are ignored.
        created_at: From CreatedAtMixin.
    """

    __tablename__ = "web_sessions"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=True,
    )
    flash: Mapped[str | None] = mapped_column(
        Text(),
        nullable=True,
    )
    expires_at: Mapped[datetime] = mapped_column(
        nullable=False,
        index=True,
    )
