from dnote.core.search import ELLIPSIS, Token, TokenKind, tokenize


def test_tokenize_text_and_markers() -> None:
    tokens = tokenize("a<dnotehl>b</dnotehl>c")

    assert tokens == [
        Token(TokenKind.TEXT, "a"),
        Token(TokenKind.HL_BEGIN),
        Token(TokenKind.TEXT, "b"),
        Token(TokenKind.HL_END),
        Token(TokenKind.TEXT, "c"),
        Token(TokenKind.EOL),
    ]


def test_tokenize_empty_input_is_end_of_line_only() -> None:
    assert tokenize("") == [Token(TokenKind.EOL)]


def test_tokenize_ellipsis_marker() -> None:
    assert [token.kind for token in tokenize(ELLIPSIS)] == [
        TokenKind.HL_BEGIN,
        TokenKind.TEXT,
        TokenKind.HL_END,
        TokenKind.EOL,
    ]


def test_tokenize_adjacent_markers_emit_no_empty_text() -> None:
    tokens = tokenize("<dnotehl>x</dnotehl><dnotehl>...</dnotehl>")

    assert all(token.value for token in tokens if token.kind is TokenKind.TEXT)
    assert [token.value for token in tokens if token.kind is TokenKind.TEXT] == ["x", "..."]


def test_tokenize_keeps_angle_brackets_that_are_not_markers() -> None:
    tokens = tokenize("<b>bold</b> <dnotehl")

    assert tokens == [Token(TokenKind.TEXT, "<b>bold</b> <dnotehl"), Token(TokenKind.EOL)]


def test_tokenize_treats_marker_text_in_body_as_marker() -> None:
    # Known limitation: marker literals cannot be escaped.
    kinds = [token.kind for token in tokenize("literal <dnotehl> in a note")]

    assert TokenKind.HL_BEGIN in kinds
