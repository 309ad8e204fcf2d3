"""Identity value objects and domain errors.

    from newsletter.domain import NewSubscriber, SubscriberEmail, SubscriberName
"""

from newsletter.domain.new_subscriber import NewSubscriber
from newsletter.domain.subscriber_email import SubscriberEmail, parse_email
from newsletter.domain.subscriber_name import SubscriberName, parse_name

__all__ = [
    "NewSubscriber",
    "SubscriberEmail",
    "SubscriberName",
    "parse_email",
    "parse_name",
]
