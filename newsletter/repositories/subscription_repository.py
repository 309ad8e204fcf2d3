"""Repository for Subscription operations.

Only the subscription engine writes through this repository; the
newsletter dispatcher uses the read-only list_confirmed_emails().
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.domain.new_subscriber import NewSubscriber
from newsletter.models.subscription import Subscription, SubscriptionStatus


class SubscriptionRepository:
    """Stateless repository for Subscription table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create_pending(
        db: AsyncSession,
        subscriber: NewSubscriber,
        *,
        subscription_id: uuid.UUID | None = None,
        subscribed_at: datetime | None = None,
    ) -> Subscription:
        """Insert a subscription in ``pending_confirmation``.

        Flushes but does not commit.

        Args:
            db: Async database session.
            subscriber: Validated subscriber.
            subscription_id: Explicit id (generated when omitted).
            subscribed_at: Creation time (now when omitted).

        Returns:
            The flushed Subscription.

        Raises:
            sqlalchemy.exc.IntegrityError: If the email already exists.
        """
        subscription = Subscription(
            id=subscription_id or uuid.uuid4(),
            email=subscriber.email.value,
            name=subscriber.name.value,
            subscribed_at=subscribed_at or datetime.now(UTC),
            status=SubscriptionStatus.PENDING_CONFIRMATION.value,
        )
        db.add(subscription)
        await db.flush()
        return subscription

    @staticmethod
    async def mark_confirmed(db: AsyncSession, subscription_id: uuid.UUID) -> None:
        """Set status to ``confirmed``.

        Idempotent: confirming a confirmed row is a no-op update.
        """
        stmt = (
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .values(status=SubscriptionStatus.CONFIRMED.value)
        )
        await db.execute(stmt)

    @staticmethod
    async def list_confirmed_emails(db: AsyncSession) -> list[str]:
        """Return the stored email of every confirmed subscription.

        Values are returned raw; callers re-validate them.
        """
        stmt = select(Subscription.email).where(
            Subscription.status == SubscriptionStatus.CONFIRMED.value
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
