"""Service layer for business logic."""

from .auth import AuthError, AuthService, get_auth_service
from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .notes import (
    BookNotFoundError,
    InvalidSearchError,
    NoteNotFoundError,
    NoteService,
    SearchQuery,
)
from .users import UserService

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "AuthService",
    "AuthError",
    "get_auth_service",
    "UserService",
    "NoteService",
    "NoteNotFoundError",
    "BookNotFoundError",
    "InvalidSearchError",
    "SearchQuery",
]
