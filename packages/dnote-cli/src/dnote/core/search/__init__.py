"""Search snippet engine: phrase escaping, matching, excerpting and rendering."""

from .formatter import Renderer, SnippetBuildError, format_tokens, render_snippet
from .matcher import Occurrence, find_occurrences, fold_case
from .phrase import escape_phrase
from .snippet import (
    DEFAULT_CONTEXT,
    ELLIPSIS,
    HIGHLIGHT_BEGIN,
    HIGHLIGHT_END,
    Snippet,
    extract_snippet,
    normalize_newlines,
)
from .tokenizer import Token, TokenKind, tokenize

__all__ = [
    "DEFAULT_CONTEXT",
    "ELLIPSIS",
    "HIGHLIGHT_BEGIN",
    "HIGHLIGHT_END",
    "Occurrence",
    "Renderer",
    "Snippet",
    "SnippetBuildError",
    "Token",
    "TokenKind",
    "escape_phrase",
    "extract_snippet",
    "find_occurrences",
    "fold_case",
    "format_tokens",
    "normalize_newlines",
    "render_snippet",
    "tokenize",
]
