"""Subscription model - one row per subscriber.

Created in ``pending_confirmation`` by the subscription engine and moved to
``confirmed`` exactly once by token redemption. Never reverts.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsletter.models.base import Base

if TYPE_CHECKING:
    from newsletter.models.subscription_token import SubscriptionToken


class SubscriptionStatus(enum.StrEnum):
    """Lifecycle states of a subscription."""

    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


class Subscription(Base):
    """Newsletter subscriber.

    Attributes:
        id: UUID primary key, generated by the application.
        email: Subscriber address (unique).
        name: Subscriber display name.
        subscribed_at: When the subscription was created.
        status: ``pending_confirmation`` or ``confirmed``.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending_confirmation', 'confirmed')",
            name="ck_subscriptions_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(320),
        unique=True,
        nullable=False,
    )
    # Unbounded: 256 grapheme clusters can be thousands of code points
    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    subscribed_at: Mapped[datetime] = mapped_column(
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=SubscriptionStatus.PENDING_CONFIRMATION.value,
    )

    # Relationships
    tokens: Mapped[list["SubscriptionToken"]] = relationship(
        "SubscriptionToken",
        back_populates="subscription",
        cascade="all, delete-orphan",
    )
