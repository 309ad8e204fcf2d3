"""SQLAlchemy ORM models for the newsletter service.

All models are exported from this module for convenient imports:
    from newsletter.models import Subscription, SubscriptionToken, User, ...

Models:
- subscription.py: Subscription, SubscriptionStatus
- subscription_token.py: SubscriptionToken (FK subscriptions)
- user.py: User (publisher credentials)
- web_session.py: WebSession (FK users, nullable)
"""

from newsletter.models.base import Base, CreatedAtMixin
from newsletter.models.subscription import Subscription, SubscriptionStatus
from newsletter.models.subscription_token import SubscriptionToken
from newsletter.models.user import User
from newsletter.models.web_session import WebSession

__all__ = [
    # Base classes
    "Base",
    "CreatedAtMixin",
    # Subscriber lifecycle
    "Subscription",
    "SubscriptionStatus",
    "SubscriptionToken",
    # Publishers
    "User",
    "WebSession",
]
