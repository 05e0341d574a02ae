"""Pydantic models for data validation and serialization."""

from .auth import JWTPayload, SessionResponse, SigninRequest
from .note import Note, NoteCreate, NoteList
from .search import SearchResponse, SearchResult
from .user import RegisterRequest, User

__all__ = [
    "User",
    "RegisterRequest",
    "Note",
    "NoteCreate",
    "NoteList",
    "SearchResult",
    "SearchResponse",
    "SigninRequest",
    "SessionResponse",
    "JWTPayload",
]
