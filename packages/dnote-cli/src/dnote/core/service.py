import logging
from typing import List, Optional

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dnote.core.interfaces import BookView, INoteService, NoteMatch, NoteView, SearchOptions
from dnote.core.models import Book, Note
from dnote.core.search import escape_phrase
from dnote.core.validate import validate_book_name
from dnote.db import get_db

logger = logging.getLogger(__name__)

SEARCH_SQL = """
    SELECT
        notes.id AS row_id,
        books.label AS book_label,
        notes.body AS body,
        books.archive AS archived
    FROM note_fts
    INNER JOIN notes ON notes.id = note_fts.rowid
    INNER JOIN books ON notes.book_uuid = books.uuid
    WHERE note_fts MATCH :query
        AND notes.deleted = 0
        AND books.deleted = 0
"""


class NoteError(Exception):
    pass


def _note_view(note: Note) -> NoteView:
    return NoteView(
        row_id=note.id,
        uuid=note.uuid,
        book_label=note.book.label,
        body=note.body,
        added_on=note.added_on,
        edited_on=note.edited_on,
    )


class SqliteNoteService(INoteService):
    def __init__(self, db: Session = None):
        self._db = db

    @property
    def db(self) -> Session:
        if self._db is None:
            self._db = next(get_db())
        return self._db

    def _find_book(self, label: str) -> Book:
        book = self.db.scalars(
            select(Book).where(Book.label == label).where(Book.deleted.is_(False))
        ).first()
        if not book:
            raise NoteError(f"book '{label}' not found")
        return book

    def _find_or_create_book(self, label: str) -> Book:
        book = self.db.scalars(
            select(Book).where(Book.label == label).where(Book.deleted.is_(False))
        ).first()
        if book:
            return book
        book = Book(label=validate_book_name(label))
        self.db.add(book)
        self.db.flush()
        logger.debug("Created book", extra={"book_label": label})
        return book

    def _find_note(self, row_id: int) -> Note:
        note = self.db.get(Note, row_id)
        if not note or note.deleted:
            raise NoteError(f"note {row_id} not found")
        return note

    def _book_views(self, *conditions) -> List[BookView]:
        note_count = func.count(Note.uuid).label("note_count")
        query = (
            select(Book.label, Book.archive, note_count)
            .outerjoin(Note, (Note.book_uuid == Book.uuid) & Note.deleted.is_(False))
            .where(Book.deleted.is_(False))
        )
        for condition in conditions:
            query = query.where(condition)
        query = query.group_by(Book.uuid).order_by(Book.label.asc())

        try:
            rows = self.db.execute(query).all()
        except SQLAlchemyError as e:
            raise NoteError(f"querying books: {e}") from e

        return [
            BookView(label=label, archived=bool(archive), note_count=count)
            for label, archive, count in rows
        ]

    def list_books(self, include_archived: bool = False) -> List[BookView]:
        """Active books first, then (optionally) archived ones, each sorted by label."""
        books = self._book_views(Book.archive.is_(False))
        if include_archived:
            books.extend(self._book_views(Book.archive.is_(True)))
        return books

    def match_books(self, pattern: str) -> List[BookView]:
        return self._book_views(Book.label.like(pattern))

    def list_notes(self, book_label: str) -> List[NoteView]:
        book = self._find_book(book_label)
        try:
            notes = self.db.scalars(
                select(Note)
                .where(Note.book_uuid == book.uuid)
                .where(Note.deleted.is_(False))
                .order_by(Note.added_on.asc(), Note.id.asc())
            ).all()
        except SQLAlchemyError as e:
            raise NoteError(f"querying notes: {e}") from e
        return [_note_view(note) for note in notes]

    def get_note(self, row_id: int) -> NoteView:
        return _note_view(self._find_note(row_id))

    def add_note(self, book_label: str, body: str) -> NoteView:
        try:
            book = self._find_or_create_book(book_label)
            note = Note(book_uuid=book.uuid, body=body)
            self.db.add(note)
            self.db.commit()
            self.db.refresh(note)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NoteError(f"Database error adding note: {str(e)}")

        logger.info("Note added", extra={"row_id": note.id, "book_label": book_label})
        return _note_view(note)

    def update_note(
        self,
        row_id: int,
        body: Optional[str] = None,
        book_label: Optional[str] = None,
    ) -> NoteView:
        note = self._find_note(row_id)
        try:
            if book_label:
                note.book_uuid = self._find_or_create_book(book_label).uuid
            if body is not None:
                note.body = body
            self.db.commit()
            self.db.refresh(note)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NoteError(f"Database error editing note: {str(e)}")
        return _note_view(note)

    def rename_book(self, label: str, new_label: str) -> BookView:
        book = self._find_book(label)
        validate_book_name(new_label)
        existing = self.db.scalars(select(Book).where(Book.label == new_label)).first()
        if existing:
            raise NoteError(f"book '{new_label}' already exists")

        try:
            book.label = new_label
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NoteError(f"Database error renaming book: {str(e)}")
        return self._book_views(Book.uuid == book.uuid)[0]

    def set_archived(self, label: str, archived: bool) -> BookView:
        book = self._find_book(label)
        try:
            book.archive = archived
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NoteError(f"Database error archiving book: {str(e)}")
        return self._book_views(Book.uuid == book.uuid)[0]

    def single_note_id(self, book_label: str) -> Optional[int]:
        """Return the id of the book's only note, or None if it has zero or several."""
        book = self._find_book(book_label)
        ids = self.db.scalars(
            select(Note.id)
            .where(Note.book_uuid == book.uuid)
            .where(Note.deleted.is_(False))
            .limit(2)
        ).all()
        if len(ids) != 1:
            return None
        return ids[0]

    def search(self, options: SearchOptions) -> List[NoteMatch]:
        """
        Find notes whose body matches every term of the phrase.

        A book filter restricts results to books whose label matches the LIKE
        pattern and includes archived books; otherwise archived books are
        skipped unless include_archived is set.
        """
        query = escape_phrase(options.phrase)
        if not query:
            return []

        sql = SEARCH_SQL
        params = {"query": query}
        if options.book:
            sql += " AND books.label LIKE :book"
            params["book"] = options.book
        elif not options.include_archived:
            sql += " AND books.archive = 0"
        sql += " ORDER BY notes.id ASC"

        try:
            rows = self.db.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as e:
            raise NoteError(f"querying notes: {e}") from e

        logger.debug("Search complete", extra={"query": query, "results": len(rows)})
        return [
            NoteMatch(
                row_id=row["row_id"],
                book_label=row["book_label"],
                body=row["body"],
                archived=bool(row["archived"]),
            )
            for row in rows
        ]
