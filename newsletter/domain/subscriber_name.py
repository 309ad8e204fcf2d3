"""SubscriberName value object."""

from dataclasses import dataclass

import regex

from newsletter.domain.errors import SubscriberValidationError

MAX_NAME_GRAPHEMES = 256

FORBIDDEN_CHARACTERS = frozenset("/()<>\\{}")

# Extended grapheme cluster (user-perceived character)
_GRAPHEME = regex.compile(r"\X")

# C0/C1 control characters; PostgreSQL text cannot store NUL
_CONTROL_CHARACTER = regex.compile(r"\p{Cc}")


def grapheme_count(value: str) -> int:
    """Count extended grapheme clusters, not code points."""
    return sum(1 for _ in _GRAPHEME.finditer(value))


@dataclass(frozen=True, slots=True)
class SubscriberName:
    """A validated subscriber display name.

    Validation runs on construction, so every instance in the system is valid.
    Rejects empty or whitespace-only input, input longer than 256 grapheme
    clusters, input containing any of ``/ ( ) < > \\ { }`` and input containing
    control characters such as NUL.

    Attributes:
        value: The name exactly as submitted.
    """

    value: str

    def __post_init__(self) -> None:
        is_empty_or_whitespace = not self.value.strip()
        is_too_long = grapheme_count(self.value) > MAX_NAME_GRAPHEMES
        contains_forbidden = any(ch in FORBIDDEN_CHARACTERS for ch in self.value)
        contains_control = _CONTROL_CHARACTER.search(self.value) is not None

        if (
            is_empty_or_whitespace
            or is_too_long
            or contains_forbidden
            or contains_control
        ):
            raise SubscriberValidationError(
                f"{self.value} is not a valid subscriber name."
            )

    @classmethod
    def parse(cls, raw: str) -> "SubscriberName":
        """Validate ``raw`` and wrap it.

        Raises:
            SubscriberValidationError: If any rule fails.
        """
        return cls(raw)

    def __str__(self) -> str:
        return self.value


def parse_name(raw: str) -> SubscriberName:
    """Parse a raw name string into a SubscriberName."""
    return SubscriberName.parse(raw)
