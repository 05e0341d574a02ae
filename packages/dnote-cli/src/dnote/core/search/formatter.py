"""Rendering of snippet tokens into display strings."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .snippet import DEFAULT_CONTEXT, extract_snippet
from .tokenizer import Token, TokenKind, tokenize

Renderer = Callable[[str], str]


class SnippetBuildError(Exception):
    """Raised when a snippet cannot be rendered into a display string."""


def _identity(text: str) -> str:
    return text


def format_tokens(
    tokens: Iterable[Token],
    highlight: Renderer,
    plain: Optional[Renderer] = None,
) -> str:
    """
    Fold a token stream into a display string.

    Text between ``HL_BEGIN`` and ``HL_END`` goes through ``highlight``;
    everything else goes through ``plain`` (verbatim by default). Neither
    callable needs to know about the marker format.
    """
    render_plain = plain or _identity
    output: List[str] = []
    buffer: List[str] = []

    def flush(render: Renderer) -> None:
        text = "".join(buffer)
        buffer.clear()
        try:
            output.append(render(text))
        except Exception as exc:
            raise SnippetBuildError("building string") from exc

    for token in tokens:
        if token.kind is TokenKind.TEXT:
            buffer.append(token.value)
        elif token.kind is TokenKind.HL_END:
            flush(highlight)
        else:
            flush(render_plain)

    if buffer:
        flush(render_plain)

    return "".join(output)


def render_snippet(
    body: str,
    phrase: str,
    highlight: Renderer,
    *,
    plain: Optional[Renderer] = None,
    context: int = DEFAULT_CONTEXT,
) -> str:
    """Extract, tokenize and format a snippet of ``body`` for ``phrase``."""
    snippet = extract_snippet(body, phrase, context)
    return format_tokens(tokenize(snippet.text), highlight, plain)


__all__ = ["Renderer", "SnippetBuildError", "format_tokens", "render_snippet"]
