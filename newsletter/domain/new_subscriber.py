"""NewSubscriber aggregate."""

from dataclasses import dataclass

from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.domain.subscriber_name import SubscriberName


@dataclass(frozen=True, slots=True)
class NewSubscriber:
    """A subscriber about to be persisted, built only from validated parts."""

    name: SubscriberName
    email: SubscriberEmail

    def __post_init__(self) -> None:
        if not isinstance(self.name, SubscriberName):
            raise TypeError("name must be a SubscriberName")
        if not isinstance(self.email, SubscriberEmail):
            raise TypeError("email must be a SubscriberEmail")

    @classmethod
    def parse(cls, name_raw: str, email_raw: str) -> "NewSubscriber":
        """Parse raw form input.

        Raises:
            SubscriberValidationError: If either field is invalid.
        """
        return cls(
            name=SubscriberName.parse(name_raw),
            email=SubscriberEmail.parse(email_raw),
        )
