"""Quoting of user-typed search phrases for SQLite FTS5 MATCH expressions."""

from __future__ import annotations


def escape_phrase(text: str) -> str:
    """
    Wrap each whitespace-delimited term in double quotes.

    Quoted terms are treated as strings by FTS5 rather than as query
    operators (``AND``, ``NEAR``, ``*`` ...). Terms keep their order and are
    joined by a single space. Double quotes inside a term are passed through
    as-is, so a term like ``say"hi`` produces an invalid MATCH expression.
    """
    return " ".join(f'"{term}"' for term in text.split())


__all__ = ["escape_phrase"]
