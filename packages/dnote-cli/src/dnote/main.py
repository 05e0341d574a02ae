import logging
from typing import List, Optional

import typer
from rich import print
from rich.markup import escape

from dnote.config import settings
from dnote.core.interfaces import SearchOptions
from dnote.core.migrations import init_db
from dnote.core.search import SnippetBuildError
from dnote.core.service import NoteError, SqliteNoteService
from dnote.core.validate import InvalidBookNameError, is_number, validate_book_name
from dnote.output import (
    format_search_line,
    print_books,
    print_note,
    print_notes,
)

logger = logging.getLogger(__name__)

APP_HELP = """
dnote: a simple command line notebook.

Notes live in books. Every note has a numeric id shown next to it in
listings; use that id to view or edit the note.

CORE WORKFLOW:
1. WRITE:  `dnote add <book> -c "<content>"` (or omit -c to open your editor).
2. BROWSE: `dnote view` lists books, `dnote view <book>` lists its notes.
3. READ:   `dnote view <id>` prints a note.
4. FIND:   `dnote search "<phrase>"` shows highlighted excerpts of matching notes.
"""

SEARCH_EXAMPLE = """
Examples:
    # search notes for an expression
    dnote search rpoplpush

    # search notes for an expression with multiple words
    dnote search "building a heap"

    # search notes within a book
    dnote search "merge sort" -b algorithm
"""

app = typer.Typer(name="dnote", help=APP_HELP, no_args_is_help=True)


def get_service() -> SqliteNoteService:
    """Open the local database, creating the schema on first use."""
    settings.get_db_path().parent.mkdir(parents=True, exist_ok=True)
    init_db()
    return SqliteNoteService()


def _fail(message: str) -> None:
    print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(code=1)


def _read_from_editor(initial: str = "") -> str:
    content = typer.edit(text=initial, editor=settings.editor, extension=".md")
    if content is None:
        return initial
    return content.strip()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug logs to stderr."),
):
    """
    dnote: a simple command line notebook.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def add(
    book: str = typer.Argument(..., help="Book to add the note to (created if missing)."),
    content: str = typer.Option(None, "--content", "-c", help="The note content. Opens your editor when omitted."),
):
    """
    Add a new note to a book.

    Examples:
        dnote add linux -c "find - recursively walk the directory"
        dnote add git
    """
    try:
        validate_book_name(book)
    except InvalidBookNameError as e:
        _fail(f"invalid book name: {e}")

    body = content if content is not None else _read_from_editor()
    if not body.strip():
        _fail("Empty content")

    service = get_service()
    try:
        note = service.add_note(book, body)
    except NoteError as e:
        _fail(str(e))

    print(f"[green]✔[/green] added to {escape(note.book_label)} [yellow]({note.row_id})[/yellow]")


def _print_listing(service: SqliteNoteService, target: Optional[str], include_archived: bool) -> None:
    if target is None:
        print_books(service.list_books(include_archived=include_archived))
    elif "%" in target:
        print_books(service.match_books(target))
    else:
        print_notes(target, service.list_notes(target))


@app.command()
def view(
    args: List[str] = typer.Argument(None, help="<book name?> <note id?>"),
    show_all: bool = typer.Option(False, "--all", "-a", help="View all books including the archived."),
    content_only: bool = typer.Option(False, "--content-only", help="Print the note content only."),
):
    """
    List books, notes or view a content.

    Examples:
        dnote view            (all books)
        dnote view java%      (books starting with a keyword)
        dnote view javascript (notes in a book)
        dnote view 1          (a particular note by its id)
    """
    args = args or []
    if len(args) > 2:
        _fail("Incorrect number of argument")

    service = get_service()
    try:
        if not args:
            _print_listing(service, None, show_all)
        elif len(args) == 1:
            if show_all:
                _fail("--all flag is only valid when viewing books")

            target = args[0]
            if "%" in target:
                _print_listing(service, target, False)
            elif is_number(target):
                print_note(service.get_note(int(target)), content_only)
            else:
                note_id = service.single_note_id(target)
                if note_id is None:
                    _print_listing(service, target, False)
                else:
                    print_note(service.get_note(note_id), content_only)
        else:
            # Deprecated form: `dnote view <book> <id>`
            if not is_number(args[1]):
                _fail(f"invalid note id: {args[1]}")
            print_note(service.get_note(int(args[1])), content_only)
    except NoteError as e:
        _fail(str(e))


@app.command(deprecated=True)
def ls(
    book: Optional[str] = typer.Argument(None, help="<book name?>"),
):
    """
    List all notes. "view" replaces this command.
    """
    service = get_service()
    try:
        _print_listing(service, book, False)
    except NoteError as e:
        _fail(str(e))


def _edit_note(service: SqliteNoteService, row_id: int, content: Optional[str], book: Optional[str]) -> None:
    if book:
        try:
            validate_book_name(book)
        except InvalidBookNameError as e:
            _fail(f"invalid book name: {e}")

    body = content
    if content is None and not book:
        original = service.get_note(row_id).body
        body = _read_from_editor(original)
        if body == original:
            print("[yellow]Nothing changed[/yellow]")
            return

    if body is not None and not body.strip():
        _fail("Empty content")

    note = service.update_note(row_id, body=body, book_label=book)
    if book:
        print(f"[green]✔[/green] moved note {note.row_id} to {escape(note.book_label)}")
    else:
        print(f"[green]✔[/green] edited the note {note.row_id}")


@app.command()
def edit(
    args: List[str] = typer.Argument(..., help="<note id|book name>"),
    content: str = typer.Option(None, "--content", "-c", help="A new content for the note."),
    book: str = typer.Option(None, "--book", "-b", help="The name of the book to move the note to."),
    name: str = typer.Option(None, "--name", "-n", help="A new name for a book."),
):
    """
    Edit a note or a book.

    Examples:
        dnote edit 3                      (edit a note in your editor)
        dnote edit 3 -c "new content"     (edit without launching an editor)
        dnote edit 3 -b javascript        (move a note to another book)
        dnote edit javascript -n js       (rename a book)
    """
    if len(args) not in (1, 2):
        _fail("Incorrect number of argument")

    service = get_service()
    try:
        # Deprecated form: `dnote edit <book> <id>`
        target = args[1] if len(args) == 2 else args[0]

        if is_number(target):
            _edit_note(service, int(target), content, book)
            return

        if name:
            try:
                renamed = service.rename_book(target, name)
            except InvalidBookNameError as e:
                _fail(f"invalid book name: {e}")
            print(f"[green]✔[/green] renamed {escape(target)} to {escape(renamed.label)}")
            return

        note_id = service.single_note_id(target)
        if note_id is None:
            print("[yellow]This book has several notes, choose one:[/yellow]")
            print_notes(target, service.list_notes(target))
            return

        _edit_note(service, note_id, content, book)
    except NoteError as e:
        _fail(str(e))


@app.command()
def archive(
    book: str = typer.Argument(..., help="<book>"),
    reverse: bool = typer.Option(False, "--reverse", "-r", help="Reverse archiving a book."),
):
    """
    Archive a book.

    Archived books are hidden from `dnote view` and `dnote search` unless
    --all is given.

    Examples:
        dnote archive git
        dnote archive git --reverse
    """
    try:
        validate_book_name(book)
    except InvalidBookNameError as e:
        _fail(f"invalid book name: {e}")

    service = get_service()
    try:
        service.set_archived(book, not reverse)
    except NoteError as e:
        _fail(str(e))

    if reverse:
        print(f"[green]✔[/green] de-archived {escape(book)}")
    else:
        print(f"[green]✔[/green] archived {escape(book)}")


@app.command(epilog=SEARCH_EXAMPLE)
def search(
    phrase: List[str] = typer.Argument(..., help="Words or phrase to search for."),
    book: str = typer.Option(None, "--book", "-b", help="Book name to find notes in."),
    show_all: bool = typer.Option(False, "--all", "-a", help="Search all notes including the archived."),
):
    """
    Search notes extensively for matching expression.
    """
    options = SearchOptions(phrase=" ".join(phrase), book=book, include_archived=show_all)
    if not options.phrase.strip():
        _fail("Incorrect number of argument")

    service = get_service()
    try:
        matches = service.search(options)
    except NoteError as e:
        _fail(str(e))

    failed = 0
    for match in matches:
        try:
            line = format_search_line(match, options.phrase, settings.snippet_context)
        except SnippetBuildError as e:
            failed += 1
            logger.error("Formatting search result failed", extra={"row_id": match.row_id}, exc_info=e)
            print(f"[red]Error: formatting note {match.row_id}: {escape(str(e))}[/red]")
            continue
        print(line)

    if failed:
        raise typer.Exit(code=1)


# Short aliases
app.command("a", hidden=True)(archive)
app.command("e", hidden=True)(edit)
app.command("l", hidden=True, deprecated=True)(ls)
app.command("notes", hidden=True, deprecated=True)(ls)
app.command("s", hidden=True, epilog=SEARCH_EXAMPLE)(search)
app.command("v", hidden=True)(view)


if __name__ == "__main__":
    app()
