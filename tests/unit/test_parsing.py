"""Unit tests for shared config and CLI parsing helpers."""

import pytest

from docugen.parsing import normalize_optional_string, parse_name_list, parse_positive_int


def test_normalize_optional_string_handles_blank_values() -> None:
    """Normalization should return `None` for `None` and blank textual values."""

    assert normalize_optional_string(None) is None
    assert normalize_optional_string("") is None
    assert normalize_optional_string("   ") is None


def test_normalize_optional_string_strips_non_blank_values() -> None:
    """Normalization should return stripped content for non-empty values."""

    assert normalize_optional_string("  value  ") == "value"
    assert normalize_optional_string(42) == "42"


@pytest.mark.parametrize(("value", "expected"), [(3, 3), (" 12 ", 12), ("1", 1)])
def test_parse_positive_int_accepts_ints_and_numeric_strings(value: object, expected: int) -> None:
    assert parse_positive_int(value, "chapter_count") == expected


@pytest.mark.parametrize("value", [0, -1, "0", "abc", "", None, True])
def test_parse_positive_int_rejects_invalid_values(value: object) -> None:
    with pytest.raises(ValueError, match="`chapter_count` must be a positive integer"):
        parse_positive_int(value, "chapter_count")


def test_parse_name_list_preserves_order_and_drops_blanks_and_duplicates() -> None:
    """Name lists keep first occurrence order from strings and sequences."""

    assert parse_name_list(" b, a ,, b ") == ("b", "a")
    assert parse_name_list(["x", " ", "y", "x"]) == ("x", "y")
    assert parse_name_list(None) == ()


def test_parse_name_list_rejects_other_types() -> None:
    with pytest.raises(ValueError):
        parse_name_list({"a": 1})
