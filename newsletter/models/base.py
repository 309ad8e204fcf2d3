"""SQLAlchemy base classes and common mixins.

Defines the declarative base and the timestamp mixin shared by models.
Column types are portable (Uuid, String, DateTime) so the same models run
on PostgreSQL in production and SQLite in tests.
"""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class CreatedAtMixin:
    """Mixin that adds a created_at column.

    Attributes:
        created_at: Timestamp when the record was created. Set automatically
            by the database on insert.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
