"""Terminal rendering for books, notes and search results.

Note text is printed as :class:`rich.text.Text` so that brackets, backslashes
and ``:emoji:`` codes in a note come out exactly as written.
"""

from __future__ import annotations

from typing import Iterable, Tuple

from rich import print
from rich.text import Text

from dnote.core.interfaces import BookView, NoteMatch, NoteView
from dnote.core.search import render_snippet

HIGHLIGHT_STYLE = "yellow"
MORE_MARKER = ("[---More---]", "yellow")


def book_label_text(label: str, archived: bool) -> Text:
    color = "bright_black" if archived else "yellow"
    return Text(f"({label})", style=color)


def format_body(body: str) -> Tuple[str, bool]:
    """
    Return the first line of a note and whether the rest was cut off.

    Trailing newlines do not count as further content.
    """
    trimmed = body.rstrip("\r\n")
    first_line, newline, _ = trimmed.partition("\n")
    if newline:
        return first_line.rstrip("\r").strip(" "), True
    return trimmed.strip(" "), False


def snippet_text(body: str, phrase: str, context: int) -> Text:
    """Render a search snippet with matched spans styled in yellow."""
    text = Text()

    def highlight(chunk: str) -> str:
        text.append(chunk, style=HIGHLIGHT_STYLE)
        return chunk

    def plain(chunk: str) -> str:
        text.append(chunk)
        return chunk

    render_snippet(body, phrase, highlight, plain=plain, context=context)
    return text


def format_search_line(match: NoteMatch, phrase: str, context: int) -> Text:
    """Build the ``(book) (id) snippet`` line for one search hit."""
    line = Text.assemble(
        book_label_text(match.book_label, match.archived),
        " ",
        (f"({match.row_id})", "yellow"),
        " ",
    )
    line.append_text(snippet_text(match.body, phrase, context))
    return line


def print_book_line(book: BookView, name_only: bool = False) -> None:
    if name_only:
        print(Text(book.label))
        return

    label = Text(book.label, style="bright_black" if book.archived else "")
    print(Text.assemble(label, " ", (f"({book.note_count})", "yellow")))


def print_books(books: Iterable[BookView], name_only: bool = False) -> None:
    for book in books:
        print_book_line(book, name_only)


def print_notes(book_label: str, notes: Iterable[NoteView]) -> None:
    print(Text.assemble(("•", "blue"), " on book ", book_label))
    for note in notes:
        body, is_excerpt = format_body(note.body)
        line = Text.assemble((f"({note.row_id})", "yellow"), " ", body)
        if is_excerpt:
            line.append(" ")
            line.append(*MORE_MARKER)
        print(line)


def _detail(name: str, value: str) -> Text:
    return Text.assemble("  ", ("•", "blue"), f" {name}: ", (value, "bold"))


def print_note(note: NoteView, content_only: bool = False) -> None:
    if content_only:
        print(Text(note.body))
        return

    print(_detail("book name", note.book_label))
    print(_detail("note id", str(note.row_id)))
    print(_detail("created at", f"{note.added_on:%a %b %d %Y %H:%M}"))
    if note.edited_on != note.added_on:
        print(_detail("updated at", f"{note.edited_on:%a %b %d %Y %H:%M}"))
    print("  ------------------------content------------------------")
    print(Text(note.body))
    print("  -------------------------------------------------------")


__all__ = [
    "book_label_text",
    "format_body",
    "format_search_line",
    "print_book_line",
    "print_books",
    "print_note",
    "print_notes",
    "snippet_text",
]
