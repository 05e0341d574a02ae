"""Note storage and full-text search for the web server."""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from markupsafe import Markup, escape

from dnote.core.search import SnippetBuildError, escape_phrase, render_snippet

from ..models.note import Note, NoteCreate
from ..models.search import SearchResult
from .config import get_config
from .database import DatabaseService

logger = logging.getLogger(__name__)

NOTE_COLUMNS = """
    notes.uuid AS uuid,
    books.label AS book_label,
    books.archive AS archived,
    notes.body AS body,
    notes.public AS public,
    notes.user_id AS user_id,
    notes.added_on AS added_on,
    notes.edited_on AS edited_on
"""

SEARCH_SQL = f"""
    SELECT {NOTE_COLUMNS}
    FROM note_fts
    INNER JOIN notes ON notes.id = note_fts.rowid
    INNER JOIN books ON notes.book_uuid = books.uuid
    WHERE note_fts MATCH ?
        AND notes.user_id = ?
        AND notes.deleted = 0
        AND books.deleted = 0
"""

LIST_SQL = f"""
    SELECT {NOTE_COLUMNS}
    FROM notes
    INNER JOIN books ON notes.book_uuid = books.uuid
    WHERE notes.user_id = ?
        AND notes.deleted = 0
        AND books.deleted = 0
"""


class NoteNotFoundError(Exception):
    """Raised when a note does not exist or is not visible to the viewer."""


class BookNotFoundError(Exception):
    """Raised when a book label does not exist for the user."""


class InvalidSearchError(Exception):
    """Raised when a phrase cannot be compiled into a full-text query."""


@dataclass
class SearchQuery:
    """Filters for listing or searching a user's notes."""

    phrase: Optional[str] = None
    book: Optional[str] = None
    include_archived: bool = False


def highlight_html(text: str) -> str:
    return Markup("<mark>{}</mark>").format(text)


def escape_html(text: str) -> str:
    return str(escape(text))


def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(
        uuid=row["uuid"],
        book_label=row["book_label"],
        body=row["body"],
        public=bool(row["public"]),
        added_on=datetime.fromisoformat(row["added_on"]),
        edited_on=datetime.fromisoformat(row["edited_on"]),
    )


class NoteService:
    """Read and write notes owned by server accounts."""

    def __init__(self, db: DatabaseService | None = None, snippet_context: int | None = None):
        self.db = db or DatabaseService()
        self.snippet_context = (
            snippet_context if snippet_context is not None else get_config().snippet_context
        )

    def _book_exists(self, conn: sqlite3.Connection, user_id: int, label: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM books WHERE user_id = ? AND label = ? AND deleted = 0",
            (user_id, label),
        ).fetchone()
        return row is not None

    def list_notes(self, user_id: int, query: SearchQuery | None = None) -> List[Note]:
        """
        List a user's notes, newest first.

        A book filter is an exact label here; an unknown label raises
        BookNotFoundError. Archived books are skipped unless requested or
        named by the filter.
        """
        query = query or SearchQuery()
        sql = LIST_SQL
        params: list = [user_id]
        if query.book:
            sql += " AND books.label = ?"
            params.append(query.book)
        elif not query.include_archived:
            sql += " AND books.archive = 0"
        sql += " ORDER BY notes.added_on DESC, notes.id DESC"

        conn = self.db.connect()
        try:
            if query.book and not self._book_exists(conn, user_id, query.book):
                raise BookNotFoundError(f"book '{query.book}' not found")
            rows = conn.execute(sql, params).fetchall()
        finally:
            conn.close()
        return [_row_to_note(row) for row in rows]

    def search_notes(self, user_id: int, query: SearchQuery) -> List[SearchResult]:
        """
        Full-text search a user's notes and render highlighted HTML snippets.

        The book filter is a LIKE pattern and includes archived books.
        Rows whose snippet cannot be rendered are logged and left out.
        """
        match = escape_phrase(query.phrase or "")
        if not match:
            return []

        sql = SEARCH_SQL
        params: list = [match, user_id]
        if query.book:
            sql += " AND books.label LIKE ?"
            params.append(query.book)
        elif not query.include_archived:
            sql += " AND books.archive = 0"
        sql += " ORDER BY notes.added_on DESC, notes.id DESC"

        start_time = time.time()
        conn = self.db.connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.OperationalError as exc:
            raise InvalidSearchError(f"invalid search phrase: {exc}") from exc
        finally:
            conn.close()

        results: List[SearchResult] = []
        for row in rows:
            try:
                snippet = render_snippet(
                    row["body"],
                    query.phrase,
                    highlight_html,
                    plain=escape_html,
                    context=self.snippet_context,
                )
            except SnippetBuildError:
                logger.exception("Formatting search result failed", extra={"note_uuid": row["uuid"]})
                continue
            results.append(
                SearchResult(
                    uuid=row["uuid"],
                    book_label=row["book_label"],
                    archived=bool(row["archived"]),
                    snippet=snippet,
                    added_on=datetime.fromisoformat(row["added_on"]),
                )
            )

        logger.info(
            "Search complete",
            extra={
                "user_id": user_id,
                "query": match,
                "results": len(results),
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return results

    def get_note(self, note_uuid: str, viewer_id: Optional[int] = None) -> Note:
        """Return a note if it is public or owned by ``viewer_id``."""
        conn = self.db.connect()
        try:
            row = conn.execute(
                f"""
                SELECT {NOTE_COLUMNS}
                FROM notes
                INNER JOIN books ON notes.book_uuid = books.uuid
                WHERE notes.uuid = ? AND notes.deleted = 0
                """,
                (note_uuid,),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            raise NoteNotFoundError(f"Note not found: {note_uuid}")
        if not row["public"] and row["user_id"] != viewer_id:
            raise NoteNotFoundError(f"Note not found: {note_uuid}")
        return _row_to_note(row)

    def is_owner(self, note_uuid: str, user_id: int) -> bool:
        conn = self.db.connect()
        try:
            row = conn.execute(
                "SELECT 1 FROM notes WHERE uuid = ? AND user_id = ? AND deleted = 0",
                (note_uuid, user_id),
            ).fetchone()
        finally:
            conn.close()
        return row is not None

    def _find_or_create_book(self, conn: sqlite3.Connection, user_id: int, label: str, now: str) -> str:
        row = conn.execute(
            "SELECT uuid FROM books WHERE user_id = ? AND label = ? AND deleted = 0",
            (user_id, label),
        ).fetchone()
        if row:
            return row["uuid"]

        book_uuid = str(uuid.uuid4())
        conn.execute(
            "INSERT INTO books (uuid, user_id, label, added_on) VALUES (?, ?, ?, ?)",
            (book_uuid, user_id, label, now),
        )
        logger.debug("Created book", extra={"user_id": user_id, "book_label": label})
        return book_uuid

    def create_note(self, user_id: int, data: NoteCreate) -> Note:
        now = datetime.now(timezone.utc).isoformat()
        note_uuid = str(uuid.uuid4())

        conn = self.db.connect()
        try:
            with conn:
                book_uuid = self._find_or_create_book(conn, user_id, data.book_name, now)
                conn.execute(
                    """
                    INSERT INTO notes (uuid, user_id, book_uuid, body, public, added_on, edited_on)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (note_uuid, user_id, book_uuid, data.content, int(data.public), now, now),
                )
        finally:
            conn.close()

        logger.info("Note created", extra={"user_id": user_id, "note_uuid": note_uuid})
        return self.get_note(note_uuid, viewer_id=user_id)

    def delete_note(self, user_id: int, note_uuid: str) -> None:
        """Soft-delete a note; its body is cleared so it leaves the search index."""
        now = datetime.now(timezone.utc).isoformat()
        conn = self.db.connect()
        try:
            with conn:
                cursor = conn.execute(
                    """
                    UPDATE notes SET deleted = 1, body = '', edited_on = ?
                    WHERE uuid = ? AND user_id = ? AND deleted = 0
                    """,
                    (now, note_uuid, user_id),
                )
        finally:
            conn.close()

        if cursor.rowcount == 0:
            raise NoteNotFoundError(f"Note not found: {note_uuid}")
        logger.info("Note deleted", extra={"user_id": user_id, "note_uuid": note_uuid})


__all__ = [
    "BookNotFoundError",
    "InvalidSearchError",
    "NoteNotFoundError",
    "NoteService",
    "SearchQuery",
    "escape_html",
    "highlight_html",
]
