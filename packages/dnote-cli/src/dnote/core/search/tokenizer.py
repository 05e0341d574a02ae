"""Scanner turning marked-up snippets into a flat token stream."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import List

from .snippet import HIGHLIGHT_BEGIN, HIGHLIGHT_END

MARKER_PATTERN = re.compile(f"({re.escape(HIGHLIGHT_BEGIN)}|{re.escape(HIGHLIGHT_END)})")


class TokenKind(str, Enum):
    TEXT = "text"
    HL_BEGIN = "hl_begin"
    HL_END = "hl_end"
    EOL = "eol"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str = ""


def tokenize(marked: str) -> List[Token]:
    """
    Split ``marked`` into text and marker tokens.

    Markers are recognized only as exact literals; there is no escape for a
    note body that contains the marker text itself. The stream always ends
    with an ``EOL`` token so consumers can flush on end of text.
    """
    tokens: List[Token] = []
    for piece in MARKER_PATTERN.split(marked):
        if piece == HIGHLIGHT_BEGIN:
            tokens.append(Token(TokenKind.HL_BEGIN))
        elif piece == HIGHLIGHT_END:
            tokens.append(Token(TokenKind.HL_END))
        elif piece:
            tokens.append(Token(TokenKind.TEXT, piece))
    tokens.append(Token(TokenKind.EOL))
    return tokens


__all__ = ["MARKER_PATTERN", "Token", "TokenKind", "tokenize"]
