"""Repository for SubscriptionToken operations."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.models.subscription_token import SubscriptionToken


class SubscriptionTokenRepository:
    """Stateless repository for SubscriptionToken table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        subscription_token: str,
        subscription_id: uuid.UUID,
    ) -> SubscriptionToken:
        """Store a token for a subscription.

        Flushes but does not commit: the caller commits the subscription and
        its token together.

        Args:
            db: Async database session.
            subscription_token: Plain token (sent in the confirmation link).
            subscription_id: Owning subscription.

        Returns:
            Created SubscriptionToken.
        """
        token = SubscriptionToken(
            subscription_token=subscription_token,
            subscription_id=subscription_id,
        )
        db.add(token)
        await db.flush()
        return token

    @staticmethod
    async def get_subscription_id(
        db: AsyncSession, subscription_token: str
    ) -> uuid.UUID | None:
        """Look up the subscription a token belongs to (exact match).

        Returns:
            Subscription id, or None when the token is unknown.
        """
        stmt = select(SubscriptionToken.subscription_id).where(
            SubscriptionToken.subscription_token == subscription_token
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()
