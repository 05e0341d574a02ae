"""Validation of user-supplied book names."""

from __future__ import annotations

RESERVED_BOOK_NAMES = frozenset({"trash", "conflicts"})


class InvalidBookNameError(ValueError):
    """Raised when a book name cannot be used as a label."""


def is_number(value: str) -> bool:
    return value.isdigit()


def validate_book_name(name: str) -> str:
    """Return ``name`` unchanged if it is a usable book label."""
    if not name:
        raise InvalidBookNameError("book name is empty")
    if name.lower() in RESERVED_BOOK_NAMES:
        raise InvalidBookNameError(f"'{name}' is a reserved book name")
    if is_number(name):
        raise InvalidBookNameError("book name cannot be a number")
    if any(char.isspace() for char in name):
        raise InvalidBookNameError("book name cannot contain spaces or newlines")
    return name


__all__ = ["InvalidBookNameError", "RESERVED_BOOK_NAMES", "is_number", "validate_book_name"]
