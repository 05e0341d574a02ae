from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# Views / Pydantic Models for Interfaces
class BookView(BaseModel):
    label: str
    note_count: int
    archived: bool


class NoteView(BaseModel):
    row_id: int
    uuid: str
    book_label: str
    body: str
    added_on: datetime
    edited_on: datetime


class NoteMatch(BaseModel):
    """A search hit as read from storage; the snippet engine only reads it."""

    row_id: int
    book_label: str
    body: str
    archived: bool


class SearchOptions(BaseModel):
    """Per-invocation search settings passed down from the command line."""

    phrase: str
    book: Optional[str] = None
    include_archived: bool = False


class INoteService(ABC):
    @abstractmethod
    def list_books(self, include_archived: bool = False) -> List[BookView]: ...

    @abstractmethod
    def match_books(self, pattern: str) -> List[BookView]: ...

    @abstractmethod
    def list_notes(self, book_label: str) -> List[NoteView]: ...

    @abstractmethod
    def get_note(self, row_id: int) -> NoteView: ...

    @abstractmethod
    def add_note(self, book_label: str, body: str) -> NoteView: ...

    @abstractmethod
    def update_note(self, row_id: int, body: Optional[str] = None, book_label: Optional[str] = None) -> NoteView: ...

    @abstractmethod
    def rename_book(self, label: str, new_label: str) -> BookView: ...

    @abstractmethod
    def set_archived(self, label: str, archived: bool) -> BookView: ...

    @abstractmethod
    def single_note_id(self, book_label: str) -> Optional[int]: ...

    @abstractmethod
    def search(self, options: SearchOptions) -> List[NoteMatch]: ...
