"""Subscription token model - confirmation bearer credentials.

Tokens have no expiry and stay valid after use (confirm is idempotent).
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsletter.models.base import Base, CreatedAtMixin

if TYPE_CHECKING:
    from newsletter.models.subscription import Subscription


class SubscriptionToken(Base, CreatedAtMixin):
    """Confirmation token linked to a subscription.

    Attributes:
        subscription_token: 25-char alphanumeric token (primary key).
        subscription_id: FK to subscriptions.id.
        created_at: When the token was issued (from CreatedAtMixin).
    """

    __tablename__ = "subscription_tokens"

    subscription_token: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    subscription_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    subscription: Mapped["Subscription"] = relationship(
        "Subscription",
        back_populates="tokens",
    )
