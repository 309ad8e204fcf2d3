"""Repository for User reads.

Publisher accounts are provisioned out of band. create() exists for that
provisioning path (and test fixtures); the request path only reads.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models.user import User


@dataclass(frozen=True)
class StoredCredential:
    """Credential row projection used by the credential store."""

    user_id: uuid.UUID
    password_hash: str


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_stored_credential(
        db: AsyncSession, username: str
    ) -> StoredCredential | None:
        """Fetch user id and password hash by exact username.

        Returns:
            StoredCredential if found, None otherwise.
        """
        stmt = select(User.user_id, User.password_hash).where(
            User.username == username
        )
        result = await db.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return StoredCredential(user_id=row.user_id, password_hash=row.password_hash)

    @staticmethod
    async def get_username(db: AsyncSession, user_id: uuid.UUID) -> str | None:
        """Fetch the username for a user id."""
        stmt = select(User.username).where(User.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        password_hash: str,
        user_id: uuid.UUID | None = None,
    ) -> User:
        """Create a publisher account.

        Args:
            db: Async database session.
            username: Unique login name.
            password_hash: Argon2id PHC string.
            user_id: Explicit id (generated when omitted).

        Returns:
            Created User.

        Raises:
            sqlalchemy.exc.IntegrityError: If the username already exists.
        """
        user = User(
            user_id=user_id or uuid.uuid4(),
            username=username,
            password_hash=password_hash,
        )
        db.add(user)
        await db.flush()
        return user
