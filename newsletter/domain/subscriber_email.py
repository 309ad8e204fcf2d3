"""SubscriberEmail value object."""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from newsletter.domain.errors import SubscriberValidationError


@dataclass(frozen=True, slots=True)
class SubscriberEmail:
    """A syntactically valid email address.

    Syntax is checked with email-validator (RFC 5322/6531 grammar). No DNS
    lookup is made: deliverability is the mail provider's concern.

    Attributes:
        value: The address exactly as submitted.
    """

    value: str

    def __post_init__(self) -> None:
        try:
            validate_email(self.value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise SubscriberValidationError(
                f"{self.value} is not a valid subscriber email."
            ) from exc

    @classmethod
    def parse(cls, raw: str) -> "SubscriberEmail":
        """Validate ``raw`` and wrap it.

        Raises:
            SubscriberValidationError: If the address is malformed.
        """
        return cls(raw)

    def __str__(self) -> str:
        return self.value


def parse_email(raw: str) -> SubscriberEmail:
    """Parse a raw email string into a SubscriberEmail."""
    return SubscriberEmail.parse(raw)
