"""Tests for title normalization, slugs and word counts."""

import pytest

from novelcraft.utils.text import count_words, generate_slug, normalize_title


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Rhea", "rhea"),
        ("  The   Iron\tCitadel ", "the iron citadel"),
        ("MARS\nstation", "mars station"),
        ("   ", ""),
    ],
)
def test_normalize_title(title: str, expected: str) -> None:
    assert normalize_title(title) == expected


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Rhea's Ship", "rheas-ship"),
        ("The Iron  Citadel", "the-iron-citadel"),
        ("  -Edge- case-  ", "edge--case"),
        ("Événement", "vnement"),
        ("!!!", ""),
    ],
)
def test_generate_slug(title: str, expected: str) -> None:
    assert generate_slug(title) == expected


def test_count_words_uses_whitespace_tokens() -> None:
    assert count_words("") == 0
    assert count_words("   \n\t ") == 0
    assert count_words("Rhea boarded the ship.") == 4
    assert count_words("line one\nline  two\tthree") == 5
