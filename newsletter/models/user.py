"""User model - newsletter publishers.

Rows are provisioned out of band; the application only reads them.
"""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from newsletter.models.base import Base, CreatedAtMixin


class User(Base, CreatedAtMixin):
    """Publisher account.

    Attributes:
        user_id: UUID primary key.
        username: Unique login name.
        password_hash: Argon2id PHC string.
        created_at: Provisioning timestamp (from CreatedAtMixin).
    """

    __tablename__ = "users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
