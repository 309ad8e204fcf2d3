"""Tests for SubscriberName parsing.

Covers grapheme-aware length limits, forbidden characters, blank input and
immutability.
"""

import dataclasses

import pytest
from hypothesis import given
from hypothesis import strategies as st

from newsletter.domain.errors import SubscriberValidationError
from newsletter.domain.subscriber_name import (
    FORBIDDEN_CHARACTERS,
    MAX_NAME_GRAPHEMES,
    SubscriberName,
    grapheme_count,
    parse_name,
)

# "e" + combining acute accent: two code points, one grapheme
_COMBINED_E = "e\u0301"

_SAFE_CHARS = st.characters(
    categories=("Lu", "Ll", "Nd"),
    exclude_characters="".join(FORBIDDEN_CHARACTERS),
)


class TestGraphemeCount:
    """grapheme_count() counts user-perceived characters."""

    def test_ascii_counts_code_points(self) -> None:
        assert grapheme_count("ursula") == 6

    def test_combining_sequence_is_one_grapheme(self) -> None:
        assert len(_COMBINED_E) == 2
        assert grapheme_count(_COMBINED_E) == 1

    def test_emoji_zwj_sequence_is_one_grapheme(self) -> None:
        family = "\U0001f468\u200d\U0001f469\u200d\U0001f467"
        assert grapheme_count(family) == 1


class TestParseNameAccepts:
    """Valid names are accepted unchanged."""

    def test_valid_name_is_parsed(self) -> None:
        assert parse_name("Ursula Le Guin").value == "Ursula Le Guin"

    def test_256_grapheme_long_name_is_valid(self) -> None:
        name = "ё" * MAX_NAME_GRAPHEMES
        assert parse_name(name).value == name

    def test_256_combined_graphemes_is_valid(self) -> None:
        """512 code points but 256 graphemes: still within the limit."""
        name = _COMBINED_E * MAX_NAME_GRAPHEMES
        assert len(name) == 2 * MAX_NAME_GRAPHEMES
        assert parse_name(name).value == name

    @given(st.text(alphabet=_SAFE_CHARS, min_size=1, max_size=MAX_NAME_GRAPHEMES))
    def test_safe_names_within_limit_are_valid(self, name: str) -> None:
        assert parse_name(name).value == name


class TestParseNameRejects:
    """Invalid names raise SubscriberValidationError."""

    def test_name_longer_than_256_graphemes_is_rejected(self) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name("a" * (MAX_NAME_GRAPHEMES + 1))

    def test_257_combined_graphemes_is_rejected(self) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name(_COMBINED_E * (MAX_NAME_GRAPHEMES + 1))

    @pytest.mark.parametrize("name", ["", " ", "   ", "\t\n"])
    def test_empty_or_whitespace_only_name_is_rejected(self, name: str) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name(name)

    @pytest.mark.parametrize("char", ["\x00", "\x07", "\x1b", "\x7f", "\x85"])
    def test_name_containing_control_character_is_rejected(self, char: str) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name(f"Ursula{char}Le Guin")

    @pytest.mark.parametrize("char", sorted(FORBIDDEN_CHARACTERS))
    def test_name_containing_forbidden_character_is_rejected(self, char: str) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name(f"Ursula{char}")

    @given(
        prefix=st.text(alphabet=_SAFE_CHARS, max_size=20),
        char=st.sampled_from(sorted(FORBIDDEN_CHARACTERS)),
        suffix=st.text(alphabet=_SAFE_CHARS, max_size=20),
    )
    def test_any_forbidden_character_anywhere_is_rejected(
        self, prefix: str, char: str, suffix: str
    ) -> None:
        with pytest.raises(SubscriberValidationError):
            parse_name(prefix + char + suffix)

    def test_error_is_also_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="is not a valid subscriber name"):
            parse_name("")


class TestSubscriberNameImmutability:
    """Construction is the only validation point; instances never change."""

    def test_value_cannot_be_reassigned(self) -> None:
        name = SubscriberName.parse("Ursula")
        with pytest.raises(dataclasses.FrozenInstanceError):
            name.value = "x/y"  # type: ignore[misc]

    def test_direct_construction_validates(self) -> None:
        with pytest.raises(SubscriberValidationError):
            SubscriberName("<script>")

    def test_str_returns_value(self) -> None:
        assert str(SubscriberName.parse("Ursula")) == "Ursula"
