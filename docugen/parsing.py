"""Shared parsing helpers for config, environment, and CLI value normalization."""

from __future__ import annotations

from typing import Iterable


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_positive_int(value: object, field_name: str) -> int:
    """Parse a strictly positive integer from an int or numeric string.

    Raises:
        ValueError: If the value is a boolean, non-numeric, or not positive.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive integer.")
    if isinstance(value, int):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(f"`{field_name}` must be a positive integer.")
        try:
            parsed = int(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a positive integer.") from exc
    if parsed <= 0:
        raise ValueError(f"`{field_name}` must be a positive integer.")
    return parsed


def parse_name_list(value: object) -> tuple[str, ...]:
    """Parse an ordered name list from a comma-separated string or a sequence.

    Blank entries are dropped and order is preserved; duplicates keep their first position.
    """

    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: Iterable[object] = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw_items = value
    else:
        raise ValueError("Expected a comma-separated string or a list of names.")

    names: list[str] = []
    for item in raw_items:
        normalized = normalize_optional_string(item)
        if normalized is not None and normalized not in names:
            names.append(normalized)
    return tuple(names)
