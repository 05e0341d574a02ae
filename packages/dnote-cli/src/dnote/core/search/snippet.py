"""Bounded-context excerpts around phrase matches.

An excerpt is plain body text with highlight markers embedded around each
match. Matches closer than twice the context size share one window; windows
further apart are joined by an ellipsis marker. The marker literals are a
wire format shared with :mod:`dnote.core.search.tokenizer`.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List

from .matcher import find_occurrences

HIGHLIGHT_BEGIN = "<dnotehl>"
HIGHLIGHT_END = "</dnotehl>"
ELLIPSIS = f"{HIGHLIGHT_BEGIN}...{HIGHLIGHT_END}"
DEFAULT_CONTEXT = 60

NEWLINE_PATTERN = re.compile(r"\r?\n")


@dataclass(frozen=True)
class Snippet:
    """Marked-up excerpt and whether body text after it was cut off."""

    text: str
    truncated: bool


def normalize_newlines(text: str) -> str:
    """Replace each ``\\n`` or ``\\r\\n`` with a single space."""
    return NEWLINE_PATTERN.sub(" ", text)


def highlight_markup(text: str) -> str:
    return f"{HIGHLIGHT_BEGIN}{text}{HIGHLIGHT_END}"


def extract_snippet(body: str, phrase: str, context: int = DEFAULT_CONTEXT) -> Snippet:
    """
    Build an excerpt of ``body`` around every occurrence of ``phrase``.

    Each occurrence gets ``context`` characters of surrounding text on both
    sides. Offsets refer to the newline-normalized body. When the phrase
    does not occur (the FTS predicate may match on stems or separate
    terms), the first ``2 * context`` characters are returned unmarked.
    No ellipsis is placed before the first window, even when it starts
    past the beginning of the body.
    """
    if context < 0:
        raise ValueError("context must be non-negative")

    body = normalize_newlines(body)
    length = len(body)
    parts: List[str] = []
    emitted = 0
    matched = False

    for occurrence in find_occurrences(body, phrase):
        window_start = max(occurrence.start - context, 0)
        if matched:
            previous_end = min(emitted + context, length)
            if window_start > previous_end:
                parts.append(body[emitted:previous_end])
                parts.append(ELLIPSIS)
            else:
                window_start = emitted

        parts.append(body[window_start:occurrence.start])
        parts.append(highlight_markup(body[occurrence.start:occurrence.end]))
        emitted = occurrence.end
        matched = True

    if not matched:
        limit = 2 * context
        return Snippet(text=body[:limit], truncated=length > limit)

    window_end = min(emitted + context, length)
    parts.append(body[emitted:window_end])
    truncated = window_end < length
    if truncated:
        parts.append(ELLIPSIS)

    return Snippet(text="".join(parts), truncated=truncated)


__all__ = [
    "DEFAULT_CONTEXT",
    "ELLIPSIS",
    "HIGHLIGHT_BEGIN",
    "HIGHLIGHT_END",
    "Snippet",
    "extract_snippet",
    "highlight_markup",
    "normalize_newlines",
]
