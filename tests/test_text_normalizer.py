"""Unit tests for text normalization helpers."""

import pytest

from app.utils.text_normalizer import (
    extract_description,
    is_valid_email,
    normalize_email,
    normalize_isbn,
    normalize_text,
    parse_publish_year,
    split_author_names,
)


class TestNormalizeText:
    def test_collapses_spaces_and_trims(self) -> None:
        assert normalize_text("  The   Left\tHand  ") == "The Left Hand"

    def test_none_becomes_empty(self) -> None:
        assert normalize_text(None) == ""

    def test_limits_blank_lines(self) -> None:
        assert normalize_text("a\r\n\r\n\r\n\r\nb") == "a\n\nb"


@pytest.mark.parametrize(
    "email,valid",
    [
        ("reader@example.com", True),
        ("first.last+tag@sub.example.org", True),
        ("no-at-sign.com", False),
        ("two@@example.com", False),
        ("missing@tld", False),
        ("spaces in@example.com", False),
        ("", False),
    ],
)
def test_is_valid_email(email, valid) -> None:
    assert is_valid_email(email) is valid


def test_normalize_email_lowercases() -> None:
    assert normalize_email("  Ada@Example.COM ") == "ada@example.com"
    assert normalize_email(None) == ""


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("978-0-14-032872-1", "9780140328721"),
        (" 0140328726 ", "0140328726"),
        ("", None),
        ("  ", None),
        (None, None),
    ],
)
def test_normalize_isbn(raw, expected) -> None:
    assert normalize_isbn(raw) == expected


class TestSplitAuthorNames:
    def test_preserves_order(self) -> None:
        assert split_author_names("Terry Pratchett, Neil Gaiman") == ["Terry Pratchett", "Neil Gaiman"]

    def test_drops_blanks_and_case_insensitive_duplicates(self) -> None:
        assert split_author_names(" A ,, b, a, B ") == ["A", "b"]

    @pytest.mark.parametrize("value", [None, "", " , "])
    def test_empty(self, value) -> None:
        assert split_author_names(value) == []


@pytest.mark.parametrize(
    "value,expected",
    [
        ("1997", 1997),
        ("June 26, 1997", 1997),
        ("Jun 1997", 1997),
        (1970, 1970),
        ("unknown", None),
        (None, None),
    ],
)
def test_parse_publish_year(value, expected) -> None:
    assert parse_publish_year(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("A fox outwits three farmers.", "A fox outwits three farmers."),
        ({"type": "/type/text", "value": "From a dict."}, "From a dict."),
        ({"type": "/type/text"}, None),
        ("   ", None),
        (42, None),
    ],
)
def test_extract_description(value, expected) -> None:
    assert extract_description(value) == expected
